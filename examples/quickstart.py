"""Quickstart — write, read and stat a file with unified-store.

Demonstrates:
- Passing a backend scheme and a JSON configuration to every call
- Writing and reading text
- Inspecting normalized metadata
"""

from __future__ import annotations

import json
import tempfile

import unified_store as us

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        config = json.dumps({"root": tmp})

        # Write a file
        us.write("fs", "hello.txt", "Hello, world!", config)
        print(f"File exists: {us.exists('fs', 'hello.txt', config)}")

        # Read it back
        print(f"Content: {us.read('fs', 'hello.txt', config)}")

        # Check metadata
        meta = us.stat("fs", "hello.txt", config)
        print(f"Size: {meta.content_length} bytes")
        print(f"Modified: {meta.last_modified}")

    print("Done! Temp directory cleaned up automatically.")
