from __future__ import annotations

import logging
from pathlib import Path


def test_successful_solve_reports_correction(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline
    from status import FileStage

    lines = []
    solver = fake_solver([solved_result])
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lines.append)

    status = pipeline.process_file(data_assets["png"])

    assert status.is_success
    assert status.stage == FileStage.DONE
    assert status.file_path == str(Path(data_assets["png"]).absolute())
    assert status.solving_time is not None
    assert status.data.correction.ra_press_seconds == 16
    assert status.data.lines == lines
    assert lines[0] == "Center Coordinate:"
    assert any("Press left button 16 seconds" in line for line in lines)
    assert any("turn declination knob 0.05 clockwise" in line for line in lines)


def test_failed_solve_does_not_stop_next_file(make_settings, fake_solver, solved_result, data_assets, caplog):
    from exceptions import MissingResultFile
    from processing.pipeline import SolvePipeline
    from status import FileStage

    caplog.set_level(logging.INFO)
    lines = []
    solver = fake_solver([MissingResultFile("ASTAP did not write a result file"), solved_result])
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lines.append)

    first = pipeline.process_file(data_assets["png"])
    assert first.is_error
    assert first.stage == FileStage.FAILED
    assert first.failed_stage == FileStage.SOLVING
    assert first.details["error_type"] == "MissingResultFile"
    assert "Solving failed" in caplog.text
    assert lines == []

    second = pipeline.process_file(data_assets["jpg"])
    assert second.is_success
    assert len(solver.requests) == 2


def test_unexpected_exception_is_contained(make_settings, fake_solver, data_assets):
    from processing.pipeline import SolvePipeline
    from status import FileStage

    pipeline = SolvePipeline(make_settings(), solver=fake_solver([RuntimeError("boom")]), report_sink=lambda _: None)
    status = pipeline.process_file(data_assets["jpg"])

    assert status.is_error
    assert status.failed_stage == FileStage.SOLVING
    assert status.details["error_type"] == "RuntimeError"
    assert "boom" in status.message


def test_raw_reading_solver_gets_original_file(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result], required_image_extension=None)
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lambda _: None)
    pipeline.process_file(data_assets["png"])

    assert Path(solver.requests[0].image_path) == Path(data_assets["png"]).absolute()
    assert not (Path(data_assets["png"]).parent / "light_frame.jpg").exists()


def test_jpg_only_solver_gets_converted_file(make_settings, fake_solver, solved_result, data_assets):
    from platesolve.solver import SolverKind
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result], required_image_extension=".jpg")
    pipeline = SolvePipeline(make_settings(SolverKind.PLATESOLVE2), solver=solver, report_sink=lambda _: None)
    status = pipeline.process_file(data_assets["png"])

    assert status.is_success
    solved_path = Path(solver.requests[0].image_path)
    assert solved_path.name == "light_frame.jpg"
    assert solved_path.exists()
    assert pipeline.is_generated(solved_path)
    assert not pipeline.is_generated(data_assets["png"])


def test_jpg_input_is_not_converted_for_jpg_solver(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result], required_image_extension=".jpg")
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lambda _: None)
    pipeline.process_file(data_assets["jpg"])

    assert Path(solver.requests[0].image_path) == Path(data_assets["jpg"]).absolute()
    assert not pipeline.is_generated(data_assets["jpg"])


def test_generated_file_is_forgotten_once_seen(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result], required_image_extension=".jpg")
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lambda _: None)
    pipeline.process_file(data_assets["png"])
    solved_path = Path(solver.requests[0].image_path)

    assert pipeline.consume_generated(solved_path)
    assert not pipeline.consume_generated(solved_path)
    assert not pipeline.is_generated(solved_path)
    assert pipeline._generated == set()


def test_generated_paths_compare_by_normalized_case(make_settings, fake_solver, monkeypatch, tmp_path):
    import os

    from processing.pipeline import SolvePipeline

    monkeypatch.setattr(os.path, "normcase", str.lower)
    pipeline = SolvePipeline(make_settings(), solver=fake_solver([]), report_sink=lambda _: None)
    pipeline._remember_generated(tmp_path / "Light_Frame.jpg")

    assert pipeline.is_generated(tmp_path / "light_frame.JPG")
    assert pipeline.consume_generated(str(tmp_path / "LIGHT_FRAME.jpg"))


def test_failed_conversion_is_not_remembered(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result], required_image_extension=".jpg")
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lambda _: None)
    pipeline.process_file(data_assets["broken"])

    assert pipeline._generated == set()


def test_conversion_failure_skips_solver(make_settings, fake_solver, solved_result, data_assets):
    from processing.pipeline import SolvePipeline
    from status import FileStage

    solver = fake_solver([solved_result], required_image_extension=".jpg")
    pipeline = SolvePipeline(make_settings(), solver=solver, report_sink=lambda _: None)
    status = pipeline.process_file(data_assets["broken"])

    assert status.is_error
    assert status.failed_stage == FileStage.NORMALIZING
    assert status.details["error_type"] == "ConversionError"
    assert solver.requests == []


def test_request_carries_session_hints(make_settings, fake_solver, solved_result, data_assets, target, sensor):
    from processing.pipeline import SolvePipeline

    solver = fake_solver([solved_result])
    settings = make_settings(number_of_regions=500, search_radius_deg=5.0)
    SolvePipeline(settings, solver=solver, report_sink=lambda _: None).process_file(data_assets["jpg"])

    request = solver.requests[0]
    assert request.target == target
    assert request.sensor == sensor
    assert request.number_of_regions == 500
    assert request.search_radius_deg == 5.0


def test_pipeline_builds_solver_from_settings(make_settings):
    from platesolve.astap import AstapSolver
    from processing.pipeline import SolvePipeline

    pipeline = SolvePipeline(make_settings(executable_path="/opt/astap/astap"))
    assert isinstance(pipeline.solver, AstapSolver)
    assert pipeline.solver.executable_path == "/opt/astap/astap"
