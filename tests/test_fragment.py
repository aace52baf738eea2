import pytest

from studio.shared.domain.models import GalleryView
from studio.shared.domain.navigation.fragment import (
    NavigationState,
    RouteMode,
    decode_fragment,
    encode_fragment,
    normalize_fragment,
)


@pytest.mark.parametrize(
    "state",
    [
        NavigationState(),
        NavigationState(active_document_id="doc-42"),
        NavigationState(gallery_view=GalleryView.FILES, current_folder_id="mid", search_query="hero card"),
        NavigationState(gallery_view=GalleryView.SHARED, search_query="a&b=c"),
        NavigationState(creation_dialog_open=True, creation_dialog_category="blank", current_folder_id="leaf"),
        NavigationState(
            creation_dialog_open=True,
            creation_dialog_category="templates",
            gallery_view=GalleryView.RECENT,
            search_query="price",
        ),
    ],
)
def test_round_trip(state):
    assert decode_fragment(encode_fragment(state)) == state.canonical()


def test_canonical_states_round_trip_exactly():
    state = NavigationState(gallery_view=GalleryView.TEMPLATES, search_query="card", current_folder_id="root")
    assert state.canonical() == state
    assert decode_fragment(encode_fragment(state)) == state


def test_document_id_decodes_to_editor_mode():
    state = decode_fragment("id=doc-42")
    assert state.active_document_id == "doc-42"
    assert state.mode is RouteMode.EDITOR
    assert state.creation_dialog_open is False


def test_new_with_category_decodes_to_creation_mode():
    state = decode_fragment("new=1&category=blank")
    assert state.creation_dialog_open is True
    assert state.creation_dialog_category == "blank"
    assert state.active_document_id is None
    assert state.mode is RouteMode.CREATE


def test_new_without_category_uses_default():
    assert decode_fragment("new=1").creation_dialog_category == "templates"


def test_document_id_beats_new_flag():
    state = decode_fragment("new=1&id=doc-42&view=files")
    assert state.mode is RouteMode.EDITOR
    assert state.active_document_id == "doc-42"
    assert state.gallery_view is GalleryView.FILES


@pytest.mark.parametrize("raw", ["#view=files&q=card", "?view=files&q=card", "#?view=files&q=card"])
def test_leading_delimiters_are_tolerated(raw):
    state = decode_fragment(raw)
    assert state.gallery_view is GalleryView.FILES
    assert state.search_query == "card"


@pytest.mark.parametrize("raw", ["", None, "#", "%zz&&==&", "view=bogus", "id="])
def test_malformed_fragments_degrade_to_gallery_defaults(raw):
    state = decode_fragment(raw)
    assert state.mode is RouteMode.GALLERY
    assert state.gallery_view is GalleryView.ALL
    assert state.search_query == ""


def test_encode_omits_default_view_and_category():
    assert encode_fragment(NavigationState()) == ""
    assert encode_fragment(NavigationState(creation_dialog_open=True, creation_dialog_category="templates")) == "new=1"


def test_encode_gallery_key_order():
    state = NavigationState(gallery_view=GalleryView.FILES, search_query="x", current_folder_id="mid")
    assert encode_fragment(state) == "view=files&q=x&folder=mid"


def test_encode_editor_drops_gallery_fields():
    state = NavigationState(active_document_id="doc-1", gallery_view=GalleryView.FILES, search_query="x")
    assert encode_fragment(state) == "id=doc-1"


def test_first_occurrence_of_a_key_wins():
    assert decode_fragment("q=first&q=second").search_query == "first"


def test_normalize_fragment():
    assert normalize_fragment("#?id=1") == "id=1"
    assert normalize_fragment("id=1") == "id=1"
    assert normalize_fragment(None) == ""
