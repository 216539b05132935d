#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
流水线与 CLI 测试（ffprobe/ffmpeg 均为 mock）
"""

import logging
from unittest.mock import patch

import pytest

from cli import main, prompt_target_size
from tsve.core.models import MediaProbe
from tsve.exceptions import EncodeError, ProbeError, ValidationError
from tsve.service import process_file, run_job

MEDIA = MediaProbe(duration_seconds=120.0, audio_bitrate_kbps=128)


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\x00" * 16)
    return path


def _fake_encode(input_path, output_path, plan, **kwargs):
    with open(output_path, "wb") as f:
        f.write(b"\x00" * 1024)


class TestProcessFile:
    @patch("tsve.service.encode", side_effect=_fake_encode)
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_full_pipeline(self, mock_probe, mock_encode, sample_config, input_file):
        output = process_file(sample_config, str(input_file), 18)

        assert output == (input_file.parent / "movie_18MB.mp4").as_posix()
        mock_probe.assert_called_once()
        args, kwargs = mock_encode.call_args
        assert args[0] == str(input_file)
        assert args[1] == output
        assert args[2].video_kbps == 1101
        assert args[2].audio_kbps == 128
        assert kwargs["scratch_root"] == sample_config["paths"]["scratch"]

    @patch("tsve.service.encode", side_effect=_fake_encode)
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_target_size_from_prompt(self, _, mock_encode, sample_config, input_file):
        output = process_file(sample_config, str(input_file), None, ask_target_size=lambda: 25)
        assert output.endswith("movie_25MB.mp4")
        assert mock_encode.call_args[0][2].target_size_mb == 25

    @patch("tsve.service.encode")
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_target_size_string_is_parsed(self, _, mock_encode, sample_config, input_file):
        mock_encode.side_effect = _fake_encode
        assert process_file(sample_config, str(input_file), "18").endswith("movie_18MB.mp4")

    @patch("tsve.service.encode")
    @patch("tsve.service.probe")
    def test_missing_input_is_validation_error(self, mock_probe, mock_encode, sample_config, tmp_path):
        with pytest.raises(ValidationError):
            process_file(sample_config, str(tmp_path / "nope.mkv"), 18)
        mock_probe.assert_not_called()
        mock_encode.assert_not_called()

    @patch("tsve.service.encode")
    @patch("tsve.service.probe")
    def test_invalid_size_stops_before_probe(self, mock_probe, mock_encode, sample_config, input_file):
        with pytest.raises(ValidationError):
            process_file(sample_config, str(input_file), 0)
        mock_probe.assert_not_called()

    @patch("tsve.service.encode")
    @patch("tsve.service.probe")
    def test_dry_run_does_not_encode(self, mock_probe, mock_encode, sample_config, input_file):
        mock_probe.return_value = MEDIA
        sample_config["dry_run"] = True
        assert process_file(sample_config, str(input_file), 18) is None
        mock_encode.assert_not_called()
        assert not (input_file.parent / "movie_18MB.mp4").exists()


class TestRunJob:
    @patch("tsve.service.encode", side_effect=_fake_encode)
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_success_exit_code(self, _, __, sample_config, input_file):
        assert run_job(sample_config, str(input_file), 18) == 0

    @patch("tsve.service.probe", side_effect=ProbeError("时长无效"))
    def test_probe_failure_reports_stage(self, _, sample_config, input_file, caplog):
        with caplog.at_level(logging.ERROR):
            assert run_job(sample_config, str(input_file), 18) == 1
        assert "媒体探测" in caplog.text

    @patch("tsve.service.probe", return_value=MediaProbe(duration_seconds=3600.0, audio_bitrate_kbps=128))
    def test_infeasible_plan(self, _, sample_config, input_file, caplog):
        with caplog.at_level(logging.ERROR):
            assert run_job(sample_config, str(input_file), 1) == 1
        assert "码率规划" in caplog.text

    @patch("tsve.service.encode", side_effect=EncodeError("第 1 遍编码失败", pass_number=1))
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_encode_failure(self, _, __, sample_config, input_file, caplog):
        with caplog.at_level(logging.ERROR):
            assert run_job(sample_config, str(input_file), 18) == 1
        assert "编码" in caplog.text
        assert not (input_file.parent / "movie_18MB.mp4").exists()

    @pytest.mark.parametrize("dry_run", [False, True])
    @patch("tsve.core.encoder.execute_ffmpeg")
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_invalid_pass_count_reports_validation(
        self, _, mock_execute, sample_config, input_file, caplog, dry_run
    ):
        sample_config["encoding"]["passes"] = "two"
        sample_config["dry_run"] = dry_run
        with caplog.at_level(logging.ERROR):
            assert run_job(sample_config, str(input_file), 18) == 1
        assert "参数校验" in caplog.text
        mock_execute.assert_not_called()

    @patch("tsve.core.encoder.execute_ffmpeg")
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_unwritable_output_reports_encode(self, _, mock_execute, sample_config, input_file, caplog):
        def fake_execute(cmd, timeout=None):
            if "-pass" in cmd and cmd[cmd.index("-pass") + 1] == "2":
                with open(cmd[-1], "wb") as f:
                    f.write(b"\x00" * 64)
            return True, None

        mock_execute.side_effect = fake_execute
        blocked = input_file.parent / "movie_18MB.mp4"
        blocked.mkdir()
        (blocked / "keep.txt").write_text("x")

        with caplog.at_level(logging.ERROR):
            assert run_job(sample_config, str(input_file), 18) == 1
        assert "编码" in caplog.text
        assert "无法写入输出文件" in caplog.text
        assert not (input_file.parent / "tmp_movie_18MB.mp4").exists()


class TestPromptTargetSize:
    def test_reprompts_until_valid(self, capsys):
        answers = iter(["abc", "0", "1001", "12.5", " 18 "])
        prompts = []

        def fake_input(prompt):
            prompts.append(prompt)
            return next(answers)

        assert prompt_target_size(fake_input) == 18
        assert len(prompts) == 5
        assert capsys.readouterr().out.count("输入无效") == 4

    def test_eof_is_validation_error(self):
        def fake_input(prompt):
            raise EOFError

        with pytest.raises(ValidationError):
            prompt_target_size(fake_input)


class TestMain:
    @patch("cli.prepare_environment", side_effect=lambda config: config)
    @patch("tsve.service.encode", side_effect=_fake_encode)
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_main_with_size_flag(self, _, mock_encode, __, input_file, tmp_path):
        assert main([str(input_file), "-s", "18", "--config", str(tmp_path / "none.yaml")]) == 0
        assert mock_encode.call_args[0][2].video_kbps == 1101

    @patch("cli.prepare_environment", side_effect=lambda config: config)
    @patch("tsve.service.probe", return_value=MEDIA)
    def test_main_invalid_size_flag(self, _, __, input_file, tmp_path):
        assert main([str(input_file), "-s", "big", "--config", str(tmp_path / "none.yaml")]) == 1

    @patch("cli.prepare_environment")
    def test_main_missing_dependency(self, mock_prepare, input_file, tmp_path):
        from tsve.exceptions import MissingDependencyError

        mock_prepare.side_effect = MissingDependencyError("ffmpeg 未安装或不在 PATH 中")
        assert main([str(input_file), "-s", "18", "--config", str(tmp_path / "none.yaml")]) == 1
