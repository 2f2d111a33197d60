"""
Train a project's model synchronously and print a summary.

The new head replaces ``models/models-<project_id>.keras`` and the
project's stored model metadata.

Run with: python train_project.py <project_id> [--epochs N]
"""
import argparse
import os
import sys

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "maltiese.settings")
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "1")

import django; django.setup()

from projects.engine import get_orchestrator
from training.evaluate import summarize_prediction
from training.exceptions import EngineError
from training.tasks import shutdown_executor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Train a Maltiese project's classifier head")
    parser.add_argument("project_id", type=int, help="ID of the project to train")
    parser.add_argument("--epochs", type=int, default=None, help="Override the epoch budget")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    orchestrator = get_orchestrator()
    if args.epochs is not None:
        orchestrator.config.epochs = args.epochs

    print("=" * 60)
    print(f"TRAINING PROJECT {args.project_id}")
    print("=" * 60)
    print(f"  Epochs        : {orchestrator.config.epochs}")
    print(f"  Learning rate : {orchestrator.config.learning_rate}")
    print(f"  Hidden units  : {orchestrator.config.hidden_units}")
    print("=" * 60)

    try:
        model_info = orchestrator.train(args.project_id).result()
    except EngineError as exc:
        print(f"TRAINING FAILED ({type(exc).__name__}): {exc}")
        return 1
    finally:
        shutdown_executor()

    summary = summarize_prediction(model_info.prediction)
    last = model_info.history[-1]

    print()
    print("=" * 60)
    print(f"RUN COMPLETE: project {model_info.project_id}")
    print(f"  Labels      : {', '.join(model_info.label_names)}")
    print(f"  Final loss  : {last.loss:.4f}")
    print(f"  Final acc   : {last.accuracy:.4f}")
    print(f"  Train acc   : {summary['accuracy']}")
    print(f"  Storage key : {model_info.storage_key}")
    for item in summary["mislabeled"]:
        print(f"  ! {item['label']} #{item['index']} scored as {item['predicted']} ({item['confidence']})")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
