"""Backend clients and response normalizers for the Figma and YApi services."""
