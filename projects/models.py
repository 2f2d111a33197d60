"""
Database models for Maltiese projects.

Models
------
Project      – Unit of work: one labelled photo set, one trained model.
Label        – Named, ordered group of images inside a project.
Image        – A single uploaded photo belonging to a label.
TrainedModel – Metadata of a project's trained classifier head.

Label order
-----------
Labels are ordered by ``position``.  The trainable labels (all but
``Unlabeled``) in that order define the class index of the trained head,
so ``TrainedModel.label_names`` snapshots the order used at training time.
"""

from django.core.validators import MinLengthValidator
from django.db import models
from django.utils import timezone

from training.types import Dataset as DatasetRecord
from training.types import Image as ImageRecord
from training.types import Label as LabelRecord
from training.types import ModelInfo, Prediction, TrainingLog


# ── Projects ────────────────────────────────────────────────────────────────

class Project(models.Model):
    """A labelling / training project."""

    name = models.CharField(
        max_length=150,
        validators=[MinLengthValidator(1)],
        help_text='Human-readable project name, e.g. "Cats vs dogs".',
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'projects'
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.name

    def to_dataset(self) -> DatasetRecord:
        """Snapshot this project's labels and images as an engine ``Dataset``."""
        labels = []
        for label in self.labels.all():
            images = [
                ImageRecord(src=image.image.path, created_at=image.created_at.timestamp())
                for image in label.images.all()
            ]
            labels.append(LabelRecord(name=label.name, images=images))
        return DatasetRecord(project_id=self.pk, labels=labels)


class Label(models.Model):
    """A named group of images; ``Unlabeled`` is never trained on."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='labels',
    )
    name = models.CharField(max_length=150, validators=[MinLengthValidator(1)])
    position = models.PositiveIntegerField(
        default=0,
        help_text='Display and class-index order within the project.',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'labels'
        ordering = ['position', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['project', 'name'],
                name='uq_label_project_name',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.project_id}/{self.name}"


class Image(models.Model):
    """An uploaded photo filed under a label."""

    label = models.ForeignKey(
        Label,
        on_delete=models.CASCADE,
        related_name='images',
    )
    image = models.ImageField(upload_to='images/%Y/%m/%d/')
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'images'
        ordering = ['created_at', 'id']

    def __str__(self) -> str:
        return f"{self.label} – {self.image.name}"


# ── Trained models ──────────────────────────────────────────────────────────

class TrainedModel(models.Model):
    """Metadata written at the end of every successful training run.

    The head's topology and weights live in ``MODELS_ROOT`` under
    ``storage_key``; this row keeps what is needed to interpret them.
    """

    project = models.OneToOneField(
        Project,
        on_delete=models.CASCADE,
        related_name='trained_model',
    )
    label_names = models.JSONField(
        default=list,
        help_text='Trainable label order at training time.',
    )
    history = models.JSONField(
        default=list,
        help_text='Per-epoch training loss / accuracy.',
    )
    storage_key = models.CharField(max_length=200)
    prediction = models.JSONField(
        default=dict,
        help_text='Training-time scores of every training image.',
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'trained_models'

    def __str__(self) -> str:
        return f"{self.project} ({self.storage_key})"

    def to_model_info(self) -> ModelInfo:
        return ModelInfo(
            project_id=self.project_id,
            label_names=list(self.label_names),
            history=[TrainingLog.from_dict(log) for log in self.history],
            storage_key=self.storage_key,
            prediction=Prediction.from_dict(self.prediction),
        )
