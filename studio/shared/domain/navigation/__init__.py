"""Address fragment codec and folder breadcrumb resolution."""

from studio.shared.domain.navigation.folder_chain import FolderChainResolver
from studio.shared.domain.navigation.fragment import (
    NavigationState,
    RouteMode,
    decode_fragment,
    encode_fragment,
    normalize_fragment,
)

__all__ = [
    "FolderChainResolver",
    "NavigationState",
    "RouteMode",
    "decode_fragment",
    "encode_fragment",
    "normalize_fragment",
]
