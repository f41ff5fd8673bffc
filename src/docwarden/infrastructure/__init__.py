"""Infrastructure layer: definition modules and document files on disk.

This layer depends on stdlib and third-party libs (ruamel.yaml).
Services call into it; it never imports from services, commands, or output.
"""
