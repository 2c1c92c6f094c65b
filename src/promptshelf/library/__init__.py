"""Prompt library: a live in-memory index over a folder of prompt documents.

Layout of a prompts root:
    prompts/
    ├── writing/
    │   ├── summarize.md               # YAML front matter + template body
    │   └── tone/rewrite-formal.md     # tags: writing, tone
    ├── code/review.md
    ├── notes.txt                      # no front matter -> "needs metadata"
    ├── node_modules/                  # ignored
    └── .drafts/                       # ignored (dot-prefixed)

Documents are the source of truth. The index is rebuilt from disk on every
process start and kept current by a polling watcher; nothing is persisted.
"""
