"""
texbuild - build TeX source into log, DVI and PDF artifacts

Delegates typesetting to an external TeX engine and DVI-to-PDF conversion to
an external converter, then arranges the resulting files per configuration.

Architecture:
- Building Context: source staging, engine runs, artifact finalization
- Utils: logging setup and PDF inspection
"""

__version__ = "0.1.0"
