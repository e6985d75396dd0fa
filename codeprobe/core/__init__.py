# Lazy imports: `from codeprobe.core.config import load_config` does not
# pull in tree-sitter and the extractors.

__all__ = [
    "parse_source",
    "parse_file",
    "detect_language",
    "build_registry",
    "ExtractorRegistry",
    "ExtractionOptions",
    "StructuralSummary",
    "AnalysisService",
    "AnalysisReport",
    "AnalysisConfig",
    "load_config",
]

_IMPORT_MAP = {
    "parse_source": ".structure",
    "parse_file": ".structure",
    "detect_language": ".structure",
    "build_registry": ".structure",
    "ExtractorRegistry": ".structure",
    "ExtractionOptions": ".structure",
    "StructuralSummary": ".structure",
    "AnalysisService": ".structure.service",
    "AnalysisReport": ".structure.service",
    "AnalysisConfig": ".config",
    "load_config": ".config",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'codeprobe.core' has no attribute {name}")
