"""
Tests for the panorama query service.
"""

import threading

import pytest

from marspano.config import ServiceSettings
from marspano.models.panorama import PanoramaQuality
from marspano.models.photo import PhotoRecord
from marspano.services.errors import InvalidQueryError, QueryCancelledError
from marspano.services.panorama_service import PanoramaService


BASE_CLOCK = 813073000.0


class FakePhotoStore:
    """In-memory photo store that records the queries it receives."""

    def __init__(self, photos):
        self.photos = list(photos)
        self.calls = []

    def fetch_photos(self, rovers=None, sol_min=None, sol_max=None):
        self.calls.append((None if rovers is None else list(rovers), sol_min, sol_max))
        rover_set = {r.lower() for r in rovers} if rovers is not None else None
        return [
            p for p in self.photos
            if (rover_set is None or p.rover in rover_set)
            and (sol_min is None or p.sol >= sol_min)
            and (sol_max is None or p.sol <= sol_max)
        ]

    def max_sol(self, rovers=None):
        sols = [
            p.sol for p in self.photos
            if rovers is None or p.rover in {r.lower() for r in rovers}
        ]
        return max(sols) if sols else None


class TripAfterChecks(threading.Event):
    """Event that becomes set after a fixed number of is_set() checks."""

    def __init__(self, checks):
        super().__init__()
        self.remaining = checks

    def is_set(self):
        self.remaining -= 1
        if self.remaining < 0:
            self.set()
        return super().is_set()


def small_sweep(sol, rover="curiosity", camera="MAST", clock=BASE_CLOCK, positions=(50.0, 65.0, 80.0)):
    """Three-position sweep that just meets the acceptance thresholds."""
    return [
        PhotoRecord(
            rover=rover,
            camera=camera,
            sol=sol,
            site=1,
            drive=0,
            azimuth=az,
            elevation=-5.0,
            clock=clock + i * 60.0,
        )
        for i, az in enumerate(positions)
    ]


@pytest.fixture
def thirty_sols():
    """One small panorama on each of sols 1..30."""
    photos = []
    for sol in range(1, 31):
        photos += small_sweep(sol)
    return FakePhotoStore(photos)


@pytest.fixture
def mixed_store():
    """Sol 1000 with a 6-photo and a 3-photo panorama, plus a perseverance sweep."""
    photos = []
    # 6 photos: 3 positions x 2 exposures
    for photo in small_sweep(1000):
        photos += [photo, photo]
    photos += small_sweep(1000, camera="NAVCAM", clock=BASE_CLOCK + 30.0)
    photos += small_sweep(200, rover="perseverance", clock=667000000.0)
    return FakePhotoStore(photos)


class TestListPanoramas:
    """Tests for paginated listing."""

    def test_pagination(self, thirty_sols):
        """Page 2 of 10 returns the middle third."""
        service = PanoramaService(thirty_sols)

        page = service.list_panoramas(sol_min=1, sol_max=30, page=2, per_page=10)

        assert page.total_count == 30
        assert page.total_pages == 3
        assert len(page.items) == 10
        assert [p.sol for p in page.items] == list(range(11, 21))
        assert page.items[0].id == "pano_curiosity_11_0"

    def test_page_past_end_is_empty(self, thirty_sols):
        service = PanoramaService(thirty_sols)

        page = service.list_panoramas(sol_min=1, sol_max=30, page=5, per_page=10)

        assert page.items == []
        assert page.total_count == 30

    def test_default_per_page(self, thirty_sols):
        service = PanoramaService(thirty_sols)

        page = service.list_panoramas(sol_min=1, sol_max=30)

        assert page.per_page == 25
        assert len(page.items) == 25

    def test_ordered_by_sol_then_rover_then_index(self, mixed_store):
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(sol_min=0)

        assert [p.id for p in page.items] == [
            "pano_perseverance_200_0",
            "pano_curiosity_1000_0",
            "pano_curiosity_1000_1",
        ]

    def test_rover_filter_case_insensitive(self, mixed_store):
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(rovers=" Perseverance ", sol_min=0)

        assert [p.rover for p in page.items] == ["perseverance"]
        assert page.filters["rovers"] == ["perseverance"]

    def test_default_sol_window(self, mixed_store):
        """Without sol bounds only the most recent window is scanned."""
        service = PanoramaService(mixed_store, ServiceSettings(default_sol_window=500))

        page = service.list_panoramas()

        assert page.filters["sol_min"] == 500
        assert page.filters["sol_max"] is None
        assert all(p.sol == 1000 for p in page.items)
        assert mixed_store.calls[-1] == (None, 500, None)

    def test_default_window_disabled(self, mixed_store):
        service = PanoramaService(mixed_store, ServiceSettings(default_sol_window=0))

        page = service.list_panoramas()

        assert page.total_count == 3
        assert page.filters["sol_min"] is None

    def test_explicit_sol_max_skips_default_window(self, mixed_store):
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(sol_max=500)

        assert [p.id for p in page.items] == ["pano_perseverance_200_0"]

    def test_min_photos_keeps_ids_stable(self, mixed_store):
        """Filtering by size must not renumber the remaining panoramas."""
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(rovers="curiosity", sol_min=1000, sol_max=1000, min_photos=4)

        assert [p.id for p in page.items] == ["pano_curiosity_1000_0"]
        assert page.items[0].total_photos == 6

    def test_min_photos_can_drop_all(self, mixed_store):
        """A threshold above every panorama yields an empty page, not an error."""
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(sol_min=1000, sol_max=1000, min_photos=7)

        assert page.items == []
        assert page.total_count == 0

    def test_empty_store(self):
        service = PanoramaService(FakePhotoStore([]))

        page = service.list_panoramas()

        assert page.items == []
        assert page.total_pages == 0


class TestListValidation:
    """Tests for rejecting malformed filters."""

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"rovers": "curiosity,marsupial"}, "rovers"),
            ({"sol_min": -1}, "sol_min"),
            ({"sol_max": -5}, "sol_max"),
            ({"sol_min": 20, "sol_max": 10}, "sol_min"),
            ({"min_photos": -1}, "min_photos"),
            ({"page": 0}, "page"),
            ({"per_page": 0}, "per_page"),
            ({"per_page": 101}, "per_page"),
        ],
    )
    def test_invalid_filters(self, mixed_store, kwargs, field):
        service = PanoramaService(mixed_store)

        with pytest.raises(InvalidQueryError) as exc_info:
            service.list_panoramas(**kwargs)

        assert exc_info.value.field == field

    def test_unknown_rover_message_lists_valid_rovers(self, mixed_store):
        service = PanoramaService(mixed_store)

        with pytest.raises(InvalidQueryError) as exc_info:
            service.list_panoramas(rovers="zhurong")

        assert "zhurong" in exc_info.value.message
        assert "curiosity" in exc_info.value.message

    def test_blank_rovers_means_all(self, mixed_store):
        service = PanoramaService(mixed_store)

        page = service.list_panoramas(rovers="  ", sol_min=0)

        assert page.total_count == 3

    def test_validation_before_store_access(self, mixed_store):
        service = PanoramaService(mixed_store)

        with pytest.raises(InvalidQueryError):
            service.list_panoramas(page=0)

        assert mixed_store.calls == []


class TestCancellation:
    """Tests for cooperative cancellation of listings."""

    def test_preset_event_cancels(self, thirty_sols):
        service = PanoramaService(thirty_sols)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(QueryCancelledError):
            service.list_panoramas(sol_min=1, sol_max=30, cancel_event=cancel)

    def test_cancel_midway_discards_results(self, thirty_sols):
        """A listing cancelled between sols raises instead of returning a partial page."""
        service = PanoramaService(thirty_sols)
        cancel = TripAfterChecks(5)

        with pytest.raises(QueryCancelledError):
            service.list_panoramas(sol_min=1, sol_max=30, cancel_event=cancel)

    def test_unset_event_completes(self, thirty_sols):
        service = PanoramaService(thirty_sols)

        page = service.list_panoramas(sol_min=1, sol_max=30, cancel_event=threading.Event())

        assert page.total_count == 30


class TestGetPanoramaById:
    """Tests for id lookup."""

    def test_round_trip(self, mixed_store):
        """Every listed id resolves to the same panorama."""
        service = PanoramaService(mixed_store)

        for panorama in service.list_panoramas(sol_min=0).items:
            assert service.get_panorama_by_id(panorama.id) == panorama

    def test_fetches_only_encoded_rover_and_sol(self, mixed_store):
        service = PanoramaService(mixed_store)

        panorama = service.get_panorama_by_id("pano_curiosity_1000_1")

        assert panorama.camera == "NAVCAM"
        assert panorama.quality is PanoramaQuality.PARTIAL
        assert mixed_store.calls == [(["curiosity"], 1000, 1000)]

    def test_unknown_index_not_found(self, mixed_store):
        service = PanoramaService(mixed_store)

        assert service.get_panorama_by_id("pano_curiosity_1000_7") is None

    def test_unknown_sol_not_found(self, mixed_store):
        service = PanoramaService(mixed_store)

        assert service.get_panorama_by_id("pano_curiosity_5_0") is None

    def test_malformed_id_not_found(self, mixed_store):
        """A non-numeric sol is treated as not found, not as an error."""
        service = PanoramaService(mixed_store)

        assert service.get_panorama_by_id("pano_curiosity_abc_0") is None
        assert mixed_store.calls == []
