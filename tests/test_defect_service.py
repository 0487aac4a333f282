import pytest

from defect_marker.config import DefectMarkerConfig
from defect_marker.core.locator import NearestElementLocator
from defect_marker.data.model_provider import InMemoryModelProvider
from defect_marker.gui.presenter import LoggingPresenter
from defect_marker.models.schemas import OutcomeStatus
from defect_marker.models.spatial import Point3D
from defect_marker.services.defect_service import DefectMarkerService, run_defect_marker

from conftest import box_at, degenerate_at, element


REPORT = {"coordinates": {"x": 0.0, "y": 0.0, "z": 0.0}, "image_path": "C:\\uploads\\crack.png"}


def _model():
    return InMemoryModelProvider(
        [
            element(
                "site",
                bounds=degenerate_at(0, 0, 0),
                children=[element("wall", bounds=box_at(1, 0, 0)), element("slab", bounds=box_at(2, 0, 0))],
            )
        ]
    )


class ExplodingProvider(InMemoryModelProvider):
    def iter_candidates(self):
        raise RuntimeError("model tree corrupted")


@pytest.fixture
def setup(write_report, images_dir):
    write_report("defect.json", REPORT)
    (images_dir / "crack.png").write_bytes(b"png")
    config = DefectMarkerConfig(reports_dir=write_report.directory, images_dir=images_dir)
    presenter = LoggingPresenter()
    return config, presenter


def test_full_run_selects_and_shows_image(setup, images_dir):
    config, presenter = setup
    provider = _model()

    outcome = DefectMarkerService(config, presenter).run(provider)

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.exit_code == 0
    assert outcome.element_name == "WALL"
    assert outcome.result.distance == pytest.approx(1.0)
    assert outcome.image_path == images_dir / "crack.png"
    assert [item.element_id for item in provider.selection] == ["wall"]
    assert presenter.images == [images_dir / "crack.png"]
    levels = [level for level, _ in presenter.messages]
    assert levels == ["info", "info"]
    assert "X = 0.0" in presenter.messages[0][1]
    assert presenter.messages[1][1] == "Element gefunden: WALL"


def test_execute_returns_status_code(setup):
    config, presenter = setup

    assert DefectMarkerService(config, presenter).execute(_model()) == 0
    assert DefectMarkerService(config, presenter).execute(None) == 1


def test_missing_document(setup):
    config, presenter = setup

    outcome = DefectMarkerService(config, presenter).run(None)

    assert outcome.status is OutcomeStatus.DOCUMENT_UNAVAILABLE
    assert presenter.messages == [("error", "Kein aktives Dokument gefunden.")]


def test_no_report_fails_before_locate(tmp_path, images_dir):
    empty = tmp_path / "empty"
    empty.mkdir()
    presenter = LoggingPresenter()
    provider = _model()

    outcome = DefectMarkerService(DefectMarkerConfig(reports_dir=empty, images_dir=images_dir), presenter).run(provider)

    assert outcome.status is OutcomeStatus.INPUT_UNAVAILABLE
    assert outcome.exit_code == 1
    assert provider.selection == []
    assert presenter.messages[-1][0] == "error"


def test_missing_coordinates(setup, write_report):
    config, presenter = setup
    write_report("newer.json", {"coordinates": {"x": 1}, "image_path": "crack.png"})

    outcome = DefectMarkerService(config, presenter).run(_model())

    assert outcome.status is OutcomeStatus.INPUT_UNAVAILABLE


def test_missing_image_path_field(setup, write_report):
    config, presenter = setup
    write_report("newer.json", {"coordinates": {"x": 1, "y": 2, "z": 3}})

    outcome = DefectMarkerService(config, presenter).run(_model())

    assert outcome.status is OutcomeStatus.IMAGE_UNAVAILABLE
    assert outcome.report.location == Point3D(1, 2, 3)


def test_missing_image_file_is_fatal_by_default(setup, images_dir):
    config, presenter = setup
    (images_dir / "crack.png").unlink()
    provider = _model()

    outcome = DefectMarkerService(config, presenter).run(provider)

    assert outcome.status is OutcomeStatus.IMAGE_UNAVAILABLE
    assert outcome.exit_code == 1
    assert provider.selection == []
    assert outcome.result is None


def test_missing_image_can_be_optional(setup, images_dir):
    config, presenter = setup
    (images_dir / "crack.png").unlink()
    provider = _model()

    outcome = DefectMarkerService(config.merged({"require_image": False}), presenter).run(provider)

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.image_path is None
    assert presenter.images == []
    assert [item.element_id for item in provider.selection] == ["wall"]


def test_no_match_is_soft_warning(setup):
    config, presenter = setup
    provider = InMemoryModelProvider([element("group", bounds=degenerate_at(3, 3, 3))])

    outcome = DefectMarkerService(config, presenter).run(provider)

    assert outcome.status is OutcomeStatus.NO_MATCH
    assert outcome.exit_code == 0
    assert presenter.messages[-1] == ("warning", "Das Element wurde im Modell nicht gefunden.")
    assert presenter.images == []


def test_empty_model_is_no_match(setup):
    config, presenter = setup

    outcome = DefectMarkerService(config, presenter).run(InMemoryModelProvider([]))

    assert outcome.status is OutcomeStatus.NO_MATCH


def test_unexpected_error_is_reported(setup):
    config, presenter = setup

    outcome = DefectMarkerService(config, presenter).run(ExplodingProvider([]))

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.exit_code == 1
    assert presenter.messages[-1] == ("error", "Es ist ein Fehler aufgetreten: model tree corrupted")


def test_cancelled_locate_fails(setup):
    config, presenter = setup
    service = DefectMarkerService(config, presenter, locator=NearestElementLocator(deadline=-1.0))

    outcome = service.run(_model())

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.report is not None


def test_announce_can_be_disabled(setup):
    config, presenter = setup

    DefectMarkerService(config.merged({"announce_report": False}), presenter).run(_model())

    assert presenter.messages == [("info", "Element gefunden: WALL")]


def test_locate_defect_does_not_need_image(setup, images_dir):
    config, presenter = setup
    (images_dir / "crack.png").unlink()

    outcome = DefectMarkerService(config, presenter).locate_defect(_model())

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.report.location == Point3D(0, 0, 0)
    assert presenter.images == []


def test_show_defect_image_only(setup, images_dir):
    config, presenter = setup
    service = DefectMarkerService(config, presenter)

    outcome = service.show_defect_image(service.read_report())

    assert outcome.status is OutcomeStatus.SUCCESS
    assert presenter.images == [images_dir / "crack.png"]


def test_outcome_serialises(setup):
    config, presenter = setup

    payload = run_defect_marker(_model(), config, presenter).to_dict()

    assert payload["status"] == "success"
    assert payload["element"] == "WALL"
    assert payload["center"] == [1.0, 0.0, 0.0]
    assert payload["scan"] == {"evaluated": 3, "skipped": 1, "failures": 0}


def test_report_without_image_field_runs_when_image_optional(setup, write_report):
    config, presenter = setup
    write_report("newer.json", {"coordinates": {"x": 0, "y": 0, "z": 0}})
    provider = _model()

    outcome = DefectMarkerService(config.merged({"require_image": False}), presenter).run(provider)

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.exit_code == 0
    assert outcome.image_path is None
    assert outcome.report.image_reference is None
    assert [item.element_id for item in provider.selection] == ["wall"]
    assert presenter.images == []


def test_locate_defect_accepts_report_without_image_field(setup, write_report):
    config, presenter = setup
    write_report("newer.json", {"coordinates": {"x": 2, "y": 0, "z": 0}})

    outcome = DefectMarkerService(config, presenter).locate_defect(_model())

    assert outcome.status is OutcomeStatus.SUCCESS
    assert outcome.element_name == "SLAB"


def test_show_defect_image_without_reference(setup, write_report):
    config, presenter = setup
    write_report("newer.json", {"coordinates": {"x": 0, "y": 0, "z": 0}})
    service = DefectMarkerService(config, presenter)

    outcome = service.show_defect_image(service.read_report())

    assert outcome.status is OutcomeStatus.IMAGE_UNAVAILABLE
    assert presenter.images == []
