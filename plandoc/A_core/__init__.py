"""
A_core: Domain models, interfaces, configuration and error types.

Core abstractions for the plandoc parsing pipeline including:
- Pydantic domain models (ParseResult, Page, Section, PolicyCandidate, AddressCandidate)
- Injected capability interfaces (PdfBackend, OcrEngine, VisionCaptioner) and ParseContext
- Heuristic weights and thresholds (HeuristicsConfig)
- Exception hierarchy and centralized logging
"""
