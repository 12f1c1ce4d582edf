from calcweb_core.config import CoreConfig, load_core_config
from calcweb_core.home import CalcWebPaths, ensure_calcweb_layout, resolve_calcweb_home

__version__ = "0.1.0"

__all__ = [
    "CalcWebPaths",
    "CoreConfig",
    "__version__",
    "ensure_calcweb_layout",
    "load_core_config",
    "resolve_calcweb_home",
]
