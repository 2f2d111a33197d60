import pytest

from training.config import TrainingConfig


def test_defaults_match_the_engine_contract():
    config = TrainingConfig()

    assert config.epochs == 50
    assert config.hidden_units == 20
    assert config.validation_split == 0.2
    assert config.input_shape == (224, 224, 3)
    assert config.cutoff_layer == "conv_pw_13_relu"


def test_from_settings_applies_overrides(settings):
    settings.MALTIESE_TRAINING = {"epochs": 3, "image_size": [96, 96]}

    config = TrainingConfig.from_settings()

    assert config.epochs == 3
    assert config.input_shape == (96, 96, 3)
    assert config.to_dict()["epochs"] == 3


def test_from_settings_rejects_unknown_keys(settings):
    settings.MALTIESE_TRAINING = {"epocs": 3}

    with pytest.raises(TypeError):
        TrainingConfig.from_settings()
