import numpy as np
import pytest

from brdfcov.cli import build_parser, config_from_args, confirm_output_name, looks_like_brdf, main
from brdfcov.config import BackendType, CacheMode
from brdfcov.writer import read_covariance_matrix

SMALL_DIMENSION = ["--per_channel_elements=4", "--num_color_channels=1"]


def _answers(*values):
    it = iter(values)
    return lambda prompt: next(it)


class TestArgumentParsing:
    def test_defaults(self):
        args = build_parser().parse_args(["a.binary", "out.txt"])
        config = config_from_args(args)

        assert config.take_log is True
        assert config.whiten_data is True
        assert config.scale_covariances is False
        assert config.whiten_before_log is True
        assert config.num_color_channels == 3
        assert config.dimension == 90 * 90 * 180 * 3
        assert config.backend is BackendType.NUMPY
        assert config.cache_vectors is CacheMode.NEVER

    @pytest.mark.parametrize(
        "text,expected",
        [("true", True), ("FALSE", False), ("1", True), ("0", False), ("yes", True), ("off", False)],
    )
    def test_bool_values(self, text, expected):
        args = build_parser().parse_args([f"--whiten_data={text}", "a.binary", "out.txt"])
        assert args.whiten_data is expected

    def test_bad_bool(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--take_natural_log=perhaps", "a.binary", "out.txt"])
        assert exc_info.value.code == 2

    def test_num_channels_alias(self):
        args = build_parser().parse_args(["--num_channels=1", "a.binary", "out.txt"])
        assert args.num_color_channels == 1

    def test_all_options(self):
        args = build_parser().parse_args(
            [
                "--take_natural_log=false",
                "--whiten_data=false",
                "--scale_covariances=true",
                "--whiten_before_log=false",
                "--num_color_channels=1",
                "--backend=reference",
                "--cache=auto",
                "a.binary",
                "b.binary",
                "out.txt",
            ]
        )
        config = config_from_args(args)

        assert not config.take_log
        assert not config.whiten_data
        assert config.scale_covariances
        assert not config.whiten_before_log
        assert config.backend is BackendType.REFERENCE
        assert config.cache_vectors is CacheMode.AUTO
        assert args.files == ["a.binary", "b.binary", "out.txt"]


class TestConfirmation:
    def test_warn_endings(self):
        assert looks_like_brdf("out.binary")
        assert looks_like_brdf("out.brdf")
        assert looks_like_brdf("out.sbrdf")
        assert not looks_like_brdf("out.txt")

    def test_plain_name_never_asks(self):
        def fail(prompt):
            raise AssertionError("should not prompt")

        assert confirm_output_name("cov.txt", fail)

    def test_repeats_until_answer(self):
        assert confirm_output_name("cov.brdf", _answers("maybe", "", "y"))

    def test_no(self):
        assert not confirm_output_name("cov.brdf", _answers("n"))

    def test_eof_aborts(self):
        def eof(prompt):
            raise EOFError

        assert not confirm_output_name("cov.brdf", eof)


class TestMain:
    def test_end_to_end(self, sample_files, tmp_path):
        paths = sample_files([[1, 1, 1, 1], [2, 2, 2, 2], [0, 0, 0, 0]])
        out = tmp_path / "cov.txt"

        code = main(
            ["--take_natural_log=false", "--whiten_data=false", *SMALL_DIMENSION]
            + [str(p) for p in paths]
            + [str(out)]
        )

        assert code == 0
        np.testing.assert_array_equal(
            read_covariance_matrix(out), [[4.0, 8.0, 0.0], [8.0, 16.0, 0.0], [0.0, 0.0, 0.0]]
        )

    def test_abort_on_brdf_like_output(self, sample_files, tmp_path):
        paths = sample_files([[1, 1, 1, 1]])
        out = tmp_path / "cov.binary"

        code = main([*SMALL_DIMENSION, str(paths[0]), str(out)], input_fn=_answers("n"))

        assert code == 1
        assert not out.exists()

    def test_yes_skips_prompt(self, sample_files, tmp_path):
        paths = sample_files([[1, 1, 1, 1]])
        out = tmp_path / "cov.binary"

        def fail(prompt):
            raise AssertionError("should not prompt")

        assert main(["-y", *SMALL_DIMENSION, str(paths[0]), str(out)], input_fn=fail) == 0
        assert out.exists()

    def test_missing_input(self, sample_files, tmp_path, capsys):
        paths = sample_files([[1, 1, 1, 1]])
        missing = tmp_path / "missing.binary"

        code = main([*SMALL_DIMENSION, str(paths[0]), str(missing), str(tmp_path / "cov.txt")])

        assert code == 1
        assert "missing.binary" in capsys.readouterr().err
        assert not (tmp_path / "cov.txt").exists()

    def test_bad_channel_count(self, sample_files, tmp_path, capsys):
        paths = sample_files([[1, 1, 1, 1]])
        code = main(["--num_color_channels=0", str(paths[0]), str(tmp_path / "cov.txt")])

        assert code == 1
        assert "num_color_channels" in capsys.readouterr().err

    def test_output_name_required(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["only_one_arg"])
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("float_format", ["abc", "%s %s", "%%"])
    def test_bad_float_format_rejected_before_reading(
        self, sample_files, tmp_path, capsys, monkeypatch, float_format
    ):
        paths = sample_files([[1, 1, 1, 1], [2, 2, 2, 2]])
        out = tmp_path / "cov.txt"

        def fail(*args, **kwargs):
            raise AssertionError("no sample should be read")

        monkeypatch.setattr("brdfcov.cli.CovarianceEngine.compute", fail)
        code = main(
            [f"--float_format={float_format}", *SMALL_DIMENSION] + [str(p) for p in paths] + [str(out)]
        )

        assert code == 1
        assert "Invalid float format" in capsys.readouterr().err
        assert not out.exists()

    def test_float_format_applied(self, sample_files, tmp_path):
        paths = sample_files([[1, 1, 1, 1], [2, 2, 2, 2]])
        out = tmp_path / "cov.txt"

        code = main(
            ["--float_format=%g", "--take_natural_log=false", "--whiten_data=false", *SMALL_DIMENSION]
            + [str(p) for p in paths]
            + [str(out)]
        )

        assert code == 0
        assert out.read_text() == "4    8    \n8    16    \n"

    def test_missing_output_directory_fails_before_reading(
        self, sample_files, tmp_path, capsys, monkeypatch
    ):
        paths = sample_files([[1, 1, 1, 1]])
        out = tmp_path / "no_such_dir" / "cov.txt"

        def fail(*args, **kwargs):
            raise AssertionError("no sample should be read")

        monkeypatch.setattr("brdfcov.cli.CovarianceEngine.compute", fail)
        code = main([*SMALL_DIMENSION, str(paths[0]), str(out)])

        assert code == 1
        assert "no_such_dir" in capsys.readouterr().err
        assert not out.exists()
