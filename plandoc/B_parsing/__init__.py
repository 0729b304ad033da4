"""
B_parsing: Byte-level text recovery and document structure.

- B01: format dispatch and PDF recovery ladder
- B02: PyMuPDF backend
- B05: section detection
- B09/B10: embedded image extraction and OCR fallback
"""
