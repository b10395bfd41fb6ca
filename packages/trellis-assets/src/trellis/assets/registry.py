import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from trellis.spec import (
    AssetBundle,
    CircularDependencyError,
    Emitted,
    InProgress,
    PageAssets,
    Position,
    PositionConflictError,
    Registered,
    RegistrationState,
)

from .bundles import BundleLoader
from .path_resolver import AssetPathResolver

log = logging.getLogger(__name__)

PositionLike = Union[Position, int, str, None]

# A bundle being walked together with its not yet visited dependencies.
_Frame = Tuple[AssetBundle, Iterator[str]]


class BundleRegistry:
    """
    Registration state of the bundles used by a single render pass.

    Each name moves through absent -> InProgress -> Registered -> Emitted.
    Meeting an InProgress name again during registration means the bundle
    depends on itself.

    Dependency graphs are walked with explicit stacks, so chain depth is not
    limited by the interpreter's recursion limit.
    """

    def __init__(self, loader: BundleLoader, resolver: AssetPathResolver):
        self.loader = loader
        self.resolver = resolver
        self._states: Dict[str, RegistrationState] = {}
        # Names currently being registered, outermost first.
        self._stack: List[str] = []

    @property
    def bundles(self) -> Dict[str, AssetBundle]:
        return {
            name: state.bundle
            for name, state in self._states.items()
            if isinstance(state, Registered)
        }

    def get_state(self, name: str) -> Optional[RegistrationState]:
        return self._states.get(name)

    def is_known(self, name: str) -> bool:
        return isinstance(self._states.get(name), (Registered, Emitted))

    def register(self, name: str, position: PositionLike = None) -> AssetBundle:
        requested = Position.parse(position) if position is not None else None

        state = self._states.get(name)
        if state is None:
            bundle = self._register_new(name)
        elif isinstance(state, InProgress):
            raise self._cycle_error(name)
        else:
            bundle = state.bundle

        if requested is not None:
            self._reconcile_position(bundle, requested)
        return bundle

    def _register_new(self, name: str) -> AssetBundle:
        base = len(self._stack)
        frames: List[_Frame] = []
        try:
            root = self._begin(name)
            frames.append((root, iter(root.depends)))
            while frames:
                bundle, deps = frames[-1]
                dep = next(deps, None)
                if dep is None:
                    frames.pop()
                    self._finish(bundle)
                    # A dependency is registered with its dependent's own position.
                    if frames and frames[-1][0].position is not None:
                        self._reconcile_position(bundle, frames[-1][0].position)
                    continue

                state = self._states.get(dep)
                if state is None:
                    dep_bundle = self._begin(dep)
                    frames.append((dep_bundle, iter(dep_bundle.depends)))
                elif isinstance(state, InProgress):
                    raise self._cycle_error(dep)
                elif bundle.position is not None:
                    self._reconcile_position(state.bundle, bundle.position)
        except Exception:
            for pending in self._stack[base:]:
                del self._states[pending]
            del self._stack[base:]
            raise
        return root

    def _begin(self, name: str) -> AssetBundle:
        self._states[name] = InProgress(name)
        self._stack.append(name)
        return self.loader.load(name)

    def _finish(self, bundle: AssetBundle) -> None:
        self.loader.publish(bundle)
        self._stack.pop()
        self._states[bundle.name] = Registered(bundle)
        log.debug(f"Registered asset bundle '{bundle.name}'.")

    def _cycle_error(self, name: str) -> CircularDependencyError:
        chain = self._stack[self._stack.index(name) :] + [name]
        return CircularDependencyError(name, chain)

    def _reconcile_position(self, bundle: AssetBundle, requested: Position) -> None:
        """
        Applies ``requested`` to ``bundle`` and propagates the resulting
        position to all of its registered dependencies.

        All or nothing: on a conflict every position adopted by this call is
        reset before the error propagates.
        """
        adopted: List[AssetBundle] = []
        visited: Set[str] = set()
        pending: List[Tuple[AssetBundle, Position]] = [(bundle, requested)]
        try:
            while pending:
                current, position = pending.pop()
                existing = current.position
                if existing is None:
                    current.position = existing = position
                    adopted.append(current)
                elif existing > position:
                    raise PositionConflictError(current.name, existing, position)

                if current.name in visited:
                    continue
                visited.add(current.name)
                for dep in current.depends:
                    pending.append((self._states[dep].bundle, existing))
        except PositionConflictError:
            for changed in adopted:
                changed.position = None
            raise

    def emit(self, name: str, page: PageAssets) -> None:
        """Flushes ``name`` and its dependencies into ``page``, each at most once."""
        state = self._states.get(name)
        if not isinstance(state, Registered):
            return

        frames: List[_Frame] = [(state.bundle, iter(state.bundle.depends))]
        while frames:
            bundle, deps = frames[-1]
            dep = next(deps, None)
            if dep is None:
                frames.pop()
                self._emit_files(bundle, page)
                self._states[bundle.name] = Emitted(bundle)
                continue

            dep_state = self._states.get(dep)
            if isinstance(dep_state, Registered):
                frames.append((dep_state.bundle, iter(dep_state.bundle.depends)))

    def emit_all(self, page: Optional[PageAssets] = None) -> PageAssets:
        page = page if page is not None else PageAssets()
        for name in list(self._states):
            self.emit(name, page)
        return page

    def _emit_files(self, bundle: AssetBundle, page: PageAssets) -> None:
        if bundle.is_dummy:
            return

        for asset in bundle.css:
            url = self.resolver.asset_url(bundle, asset.path)
            page.add_css(url, {**bundle.css_options, **asset.options})

        for asset in bundle.js:
            url = self.resolver.asset_url(bundle, asset.path)
            options = {**bundle.js_options, **asset.options}
            position = options.pop("position", None)
            page.add_js(
                url,
                options,
                Position.parse(position) if position is not None else Position.END,
            )

    def clear(self) -> None:
        self._states.clear()
        self._stack.clear()
