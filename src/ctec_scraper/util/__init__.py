from .text import ESSAY_MARKER_CHAINS, extract, extract_essay, norm, section_between

__all__ = ["ESSAY_MARKER_CHAINS", "extract", "extract_essay", "norm", "section_between"]
