"""
Maltiese Transfer-Learning Engine
=================================

Trains a small per-project classifier head on top of a frozen MobileNet:

1. Checks that the project's dataset is trainable (≥ 2 labels, ≥ 5 images each).
2. Embeds every image with the shared, frozen backbone.
3. Fits a Flatten → Dense(20) → Dense(N, softmax) head for 50 epochs.
4. Scores the training images so poorly-fitting ones can be relabelled.
5. Saves the head under ``models/models-<project_id>.keras``.
6. Serves single-image predictions from the current head.

Package layout
--------------
config.py       – ``TrainingConfig`` dataclass, paths, hyperparameter defaults.
types.py        – Dataset / prediction / model-metadata dataclasses.
exceptions.py   – Engine error taxonomy.
dataset.py      – Trainability rule.
resources.py    – Scoped bookkeeping of transient tensors.
features.py     – Frozen MobileNet feature extractor.
head.py         – Classifier head and its fit loop.
train.py        – One training run: embeddings → fit → training-set scores.
evaluate.py     – Summary of training-set scores (accuracy, confusion matrix).
persistence.py  – Per-project save / load of trained heads.
predict.py      – Single-image scoring.
stores.py       – Dataset / model-metadata store interfaces.
tasks.py        – Background executor.
orchestrator.py – Model state machine (train / load / predict).
"""
