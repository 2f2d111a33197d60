from training.types import (
    ImagePrediction,
    LabelPrediction,
    ModelInfo,
    Prediction,
    TrainingLog,
)


def test_model_info_survives_json_shaped_storage():
    info = ModelInfo(
        project_id=3,
        label_names=["A", "B"],
        history=[TrainingLog(0, 0.9, 0.5), TrainingLog(1, 0.4, 1.0)],
        storage_key="models-3",
        prediction=Prediction(project_id=3, labels=[
            LabelPrediction("A", [ImagePrediction([0.75, 0.25])]),
            LabelPrediction("B", [ImagePrediction([0.5, 0.5])]),
        ]),
    )

    data = info.to_dict()

    assert data["history"][1] == {"epoch": 1, "loss": 0.4, "accuracy": 1.0}
    assert data["prediction"]["labels"][0]["images"][0]["scores"] == [0.75, 0.25]
    assert ModelInfo.from_dict(data) == info
