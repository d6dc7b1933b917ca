"""EcoFlux: hybrid microgrid plant simulator and control backend."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("ecoflux")
except Exception:
    __version__ = "dev"
