"""
File Download Example

Streams the response body straight to disk and prints the diagnostics dump.
"""

import os
import tempfile

from transfer_engine import (
    EngineConfig,
    LifecycleController,
    RequestDescriptor,
    ThreadedMultiplexer,
    dump,
)


def main():
    config = EngineConfig.create(max_workers=2)

    with tempfile.TemporaryDirectory() as tmpdir:
        output_path = os.path.join(tmpdir, "images", "image.jpeg")

        with ThreadedMultiplexer(config=config) as multi:
            controller = LifecycleController(multi, config)

            request = RequestDescriptor(
                "https://httpbin.org/image/jpeg",
                output_path=output_path,
                timeout=30000,
            )
            controller.submit(request, lambda r: print(dump(r)))
            multi.run()

        if request.succeeded:
            print(f"\nSaved {os.path.getsize(output_path)} bytes to {output_path}")
        else:
            print(f"\nDownload failed: {request.message}")


if __name__ == "__main__":
    main()
