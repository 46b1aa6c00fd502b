"""Route modules discovered from a directory.

A route module is a Python file exporting a ``setup(group)`` function
(sync or async) that registers its handlers on the group it is given::

    # routes/users.py
    def setup(group):
        group.get("/users/{id}", GetUser())
        group.post("/users", CreateUser())

Discovery and registration are separate steps: :func:`discover_route_modules`
yields :class:`RouteModule` units, :func:`load_routes` calls their
``setup``. Callers with modules from elsewhere (entry points, a static
list) can build ``RouteModule`` values themselves and skip discovery.
"""

import importlib.util
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from relay._internal.invoke import invoke
from relay.routes import RouteGroup

logger = logging.getLogger("relay.loader")

# File suffixes treated as route modules
SOURCE_EXTENSIONS = (".py",)

# Name fragments that mark a file as something other than a route module
EXCLUDED_MARKERS = (".map.", ".spec.", ".test.")

# Name prefixes skipped as private modules or test files
EXCLUDED_PREFIXES = ("_", "test_")


@dataclass(frozen=True, slots=True)
class RouteModule:
    """A loadable unit exposing the ``setup(group)`` capability."""

    name: str
    path: Path
    setup: Callable[[RouteGroup], Any]


def is_route_file(
    name: str,
    extensions: Iterable[str] = SOURCE_EXTENSIONS,
    excluded: Iterable[str] = EXCLUDED_MARKERS,
) -> bool:
    """Whether a file called *name* should be loaded as a route module.

    The name must end with one of *extensions* AND contain none of the
    *excluded* markers (both compared case-insensitively), and must not
    start with ``_`` or ``test_``.
    """
    upper = name.upper()
    has_extension = any(upper.endswith(ext.upper()) for ext in extensions)
    has_excluded_marker = any(marker.upper() in upper for marker in excluded)
    return has_extension and not has_excluded_marker and not name.startswith(EXCLUDED_PREFIXES)


def _load_setup(path: Path) -> Callable[[RouteGroup], Any] | None:
    """Import *path* and return its ``setup`` function, if any."""
    module_name = f"_relay_routes_{path.stem.replace('.', '_')}_{abs(hash(path))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        return None

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    setup = getattr(module, "setup", None)
    if setup is None or not callable(setup):
        return None
    return setup


def discover_route_modules(directory: str | Path) -> Iterator[RouteModule]:
    """Yield a :class:`RouteModule` for every route file in *directory*.

    Entries are visited in name order so mount order is deterministic.
    Files without a callable ``setup`` are skipped. Import errors
    propagate.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Routes directory not found: {root}")

    for item in sorted(root.iterdir()):
        if not item.is_file() or not is_route_file(item.name):
            continue
        setup = _load_setup(item)
        if setup is None:
            logger.debug("Skipping %s: no setup() function", item.name)
            continue
        yield RouteModule(name=item.stem, path=item, setup=setup)


async def load_routes(modules: Iterable[RouteModule], group: RouteGroup) -> int:
    """Call ``setup(group)`` for each module; return how many ran."""
    count = 0
    for module in modules:
        await invoke(module.setup, group)
        logger.debug("Registered routes from %s on %r", module.path, group)
        count += 1
    return count
