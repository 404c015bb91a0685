from .download_link import ResolutionService, validate_source_url

__all__ = ["ResolutionService", "validate_source_url"]
