"""
Basic Transfer Engine Usage

Submits a few descriptors to one controller and drives the multiplexer
until all of them reach a terminal state.
"""

import json

from transfer_engine import (
    LifecycleController,
    RequestDescriptor,
    ThreadedMultiplexer,
)


def on_done(request: RequestDescriptor) -> None:
    print(f"\n[{request.state.value}] {request.method} {request.url}")
    print(f"Status: {request.status} {request.message or ''}")
    print(f"Attempts: {request.attempts}, budget left: {request.retry_budget}")
    if request.in_data:
        print(f"Body: {request.in_data[:200].decode('utf-8', errors='replace')}")


def main():
    with ThreadedMultiplexer(max_workers=4) as multi:
        controller = LifecycleController(multi)

        # Simple GET
        get = RequestDescriptor("https://jsonplaceholder.typicode.com/posts/1")
        controller.submit(get, on_done)

        # POST with JSON body and a custom header
        post = RequestDescriptor(
            "https://jsonplaceholder.typicode.com/posts",
            method="POST",
            content_type="application/json",
            out_data=json.dumps({"title": "My Post", "userId": 1}).encode(),
        )
        post.set_header("X-Trace", "example-1")
        controller.submit(post, on_done)

        # Redirect followed by the controller, one unit of budget per hop
        redirect = RequestDescriptor("https://httpbin.org/redirect/2", max_retry_count=5)
        controller.submit(redirect, on_done)

        multi.run(timeout=30)


if __name__ == "__main__":
    main()
