"""External collaborators consumed by the imagegen core.

Modules
-------
storage
    File storage interface and the local-disk implementation.
metadata
    Embedded metadata (EXIF/IPTC/XMP) reader and writer built on exiftool.
synthesis
    Synthesis client base class and registry.
openai_client
    OpenAI-compatible images API client.
diffusers_client
    Local HuggingFace diffusers pipeline client.
"""
