"""
Structured Logging Example

Lifecycle events (submitted, redirect, attempt failed, finished) go to a
colored console and to a rotating log file.
"""

import os
import tempfile

from transfer_engine import (
    EngineConfig,
    LifecycleController,
    LoggingConfig,
    RequestDescriptor,
    ThreadedMultiplexer,
)


def main():
    log_path = os.path.join(tempfile.gettempdir(), "transfer_engine", "events.log")

    logging_config = LoggingConfig.create(
        level="DEBUG",
        format="colored",
        enable_file=True,
        file_path=log_path,
        extra_fields={"service": "example"},
    )
    config = EngineConfig.create(logging=logging_config, debug=True)

    with ThreadedMultiplexer(config=config) as multi:
        controller = LifecycleController(multi, config)

        # Token in the query string is masked in every log record
        ok = RequestDescriptor("https://httpbin.org/get?token=secret")
        controller.submit(ok, None)

        # Unreachable host: retried until the budget is spent
        down = RequestDescriptor("https://localhost:9/", max_retry_count=2, timeout=1000)
        controller.submit(down, None)

        multi.run(timeout=30)
        controller.close()

    print(f"\nEvents written to {log_path}")


if __name__ == "__main__":
    main()
