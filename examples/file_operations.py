"""File operations — every unified-store operation demonstrated.

Covers: write, read, exists, stat, create_dir, list_entries, copy, rename,
delete and capability, using the in-memory backend.
"""

from __future__ import annotations

import unified_store as us

if __name__ == "__main__":
    config = {"root": "workspace"}

    # --- Write ---
    us.write("memory", "docs/readme.txt", "First file", config)
    us.write("memory", "docs/changelog.txt", "v0.1.0 - initial release", config)
    us.write("memory", "data/report.csv", "col1,col2\n1,2\n3,4", config)
    us.create_dir("memory", "tmp/", config)
    print("Created 3 files and 1 empty directory.\n")

    # --- List a directory ---
    print("Entries in docs/:")
    for entry in us.list_entries("memory", "docs/", config):
        print(f"  {entry.name} ({entry.metadata.content_length} bytes)")

    print("\nEntries at the root:")
    for entry in us.list_entries("memory", "", config):
        kind = "dir " if entry.metadata.is_dir else "file"
        print(f"  [{kind}] {entry.path}")

    # --- Read ---
    print(f"\nreport.csv content:\n{us.read('memory', 'data/report.csv', config)}")

    # --- Metadata ---
    meta = us.stat("memory", "docs/readme.txt", config)
    print(f"\nreadme.txt: {meta.to_dict()}")
    print(f"docs/:      {us.stat('memory', 'docs/', config).to_dict()}")

    # --- Copy ---
    us.copy("memory", "docs/readme.txt", "docs/readme_backup.txt", config)
    print(f"\nCopied readme.txt (backup exists: {us.exists('memory', 'docs/readme_backup.txt', config)})")

    # --- Rename ---
    us.rename("memory", "docs/changelog.txt", "archive/changelog.txt", config)
    print(f"Renamed changelog.txt (original exists: {us.exists('memory', 'docs/changelog.txt', config)})")

    # --- Delete ---
    us.delete("memory", "docs/readme_backup.txt", config)
    us.delete("memory", "tmp/", config)
    print(f"Deleted tmp/ (exists: {us.exists('memory', 'tmp/', config)})")

    # --- Capabilities ---
    print(f"\nmemory capabilities: {us.capability('memory', config)}")
    print(f"s3 supports rename:  {us.capability('s3', {'bucket': 'example'}).rename}")
