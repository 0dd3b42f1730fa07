from route_narrator.services import *  # noqa: F401,F403
from route_narrator.services import __all__ as _services_all

__version__ = "0.1.0"

__all__ = [*_services_all, "__version__"]
