"""Tests for the interactive parameter prompts."""

from camtrap_capture.config import config_from_settings
from camtrap_capture.independence import Policy
from camtrap_capture.prompt import ask_number, fill_missing
from camtrap_capture.records import TagType


def scripted(*answers):
    """input() replacement returning the given answers in order."""
    pending = list(answers)
    return lambda message: pending.pop(0)


class TestAskNumber:
    def test_asks_again_until_valid(self, capsys):
        assert ask_number("? ", input_fn=scripted("abc", "-3", " 30 ")) == 30
        assert capsys.readouterr().out.count("Invalid input") == 2

    def test_choices(self):
        assert ask_number("? ", choices=(1, 2), input_fn=scripted("3", "2")) == 2


class TestFillMissing:
    def test_fills_everything(self, capsys):
        settings = fill_missing(
            {},
            sample_path="/mnt/survey/siteA/IMG_0001.JPG",
            input_fn=scripted("30", "2", "1", "3"),
        )
        out = capsys.readouterr().out
        assert "1): mnt" in out
        assert "3): siteA" in out
        assert "Deployment of the sample: siteA" in out

        config = config_from_settings(settings)
        assert config.min_delta_time == 30
        assert config.policy is Policy.LAST_RECORD
        assert config.target is TagType.SPECIES
        assert config.deployment_index == 3

    def test_keeps_given_values(self):
        settings = {"capture": {"min_delta_time": 15, "policy": "LIR", "target": "individual"}}
        fill_missing(settings, has_deployment_column=True, input_fn=scripted())
        assert settings["capture"] == {"min_delta_time": 15, "policy": "LIR", "target": "individual"}

    def test_deployment_index_must_be_a_listed_level(self):
        settings = {"capture": {"min_delta_time": 15, "policy": 1, "target": 1}}
        fill_missing(settings, sample_path="/a/b/c.jpg", input_fn=scripted("0", "2"))
        assert settings["capture"]["deployment_index"] == 2
