"""
Experiment pipeline: split, train the four models, assemble the ensemble, evaluate.

All run state lives on an :class:`Experiment` instance, so independent runs
(for example in tests) never share trained models or data.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd
from loguru import logger

from .data import Dataset, FeatureScaler, Split, train_test_split
from .exceptions import EmptyDataset, HeartMLError
from .metrics import ConfusionCounts, MetricsEvaluator, ModelEvaluation
from .models import BaseModel, ModelFactory, Prediction, VotingEnsemble, ENSEMBLE_MEMBERS
from .utils.config import ExperimentConfig

ENSEMBLE_NAME = 'ensemble'

DISPLAY_NAMES = {
    'logistic_regression': 'Logistic Regression',
    'knn': 'KNN',
    'naive_bayes': 'Gaussian Naive Bayes',
    'decision_tree': 'Decision Tree',
    ENSEMBLE_NAME: 'Voting Classifier',
}


@dataclass
class ExperimentResult:
    """
    Outcome of one experiment run.

    Predictors that failed to train or evaluate are absent from
    ``evaluations`` and listed in ``failures`` with the reason.
    """
    split: Split
    evaluations: Dict[str, ModelEvaluation] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    def metrics_table(self) -> pd.DataFrame:
        """One row per surviving predictor: accuracy, precision, recall, f1 and counts."""
        return MetricsEvaluator.to_frame(self.evaluations)

    def predictions(self) -> Dict[str, List[Prediction]]:
        return {name: ev.predictions for name, ev in self.evaluations.items()}

    def confusion_counts(self) -> Dict[str, ConfusionCounts]:
        return {name: ev.confusion for name, ev in self.evaluations.items()}

    def format_table(self) -> str:
        return MetricsEvaluator.format_table(self.evaluations)


class Experiment:
    """
    Runs the full comparison on one dataset.

    Each model trains inside its own failure boundary: a HeartMLError from
    one model is logged and recorded, and the remaining models continue. The
    ensemble is only assembled when all four members trained.
    """

    def __init__(self, config: Optional[ExperimentConfig] = None,
                 evaluator: Optional[MetricsEvaluator] = None):
        self.config = config or ExperimentConfig()
        self.evaluator = evaluator or MetricsEvaluator()
        self.trained_models: Dict[str, BaseModel] = {}
        self.failures: Dict[str, str] = {}

    def run(self, dataset: Dataset) -> ExperimentResult:
        """
        Execute the pipeline.

        Args:
            dataset: Cleaned, fully-numeric dataset

        Returns:
            ExperimentResult with per-predictor evaluations and failures
        """
        logger.info("=" * 60)
        logger.info("HEART DISEASE CLASSIFIER COMPARISON")
        logger.info("=" * 60)

        if dataset.is_empty():
            raise EmptyDataset("source dataset")

        self.trained_models = {}
        self.failures = {}

        split = train_test_split(dataset, self.config.split_ratio, self.config.split_seed)
        train, test = split
        if self.config.scale:
            train, test = FeatureScaler('standard').fit_transform(train, test)

        self._train_models(train)

        predictors: Dict[str, BaseModel] = dict(self.trained_models)
        ensemble = self._assemble_ensemble()
        if ensemble is not None:
            predictors[ENSEMBLE_NAME] = ensemble

        evaluations = self._evaluate(predictors, test)

        if self.failures:
            logger.warning(f"Partial results: {len(self.failures)} predictor(s) omitted: "
                           f"{', '.join(self.failures)}")
        return ExperimentResult(split=split, evaluations=evaluations, failures=dict(self.failures))

    # ------------------------------------------------------------------

    def _train_one(self, name: str, train: Dataset) -> BaseModel:
        model = ModelFactory.create_model(name, self.config.model_config(name))
        model.train(train)
        return model

    def _train_models(self, train: Dataset) -> None:
        """Train all four members, sequentially or on a thread pool."""
        logger.info(f"Training {len(ENSEMBLE_MEMBERS)} models "
                    f"({'parallel' if self.config.parallel else 'sequential'})")
        trained: Dict[str, BaseModel] = {}

        if self.config.parallel:
            # models share only the read-only train set
            with ThreadPoolExecutor(max_workers=len(ENSEMBLE_MEMBERS)) as executor:
                futures = {executor.submit(self._train_one, name, train): name for name in ENSEMBLE_MEMBERS}
                for future in as_completed(futures):
                    name = futures[future]
                    try:
                        trained[name] = future.result()
                    except HeartMLError as e:
                        self._record_failure(name, 'training', e)
        else:
            for idx, name in enumerate(ENSEMBLE_MEMBERS, 1):
                logger.info(f"[{idx}/{len(ENSEMBLE_MEMBERS)}] Training {name}...")
                try:
                    trained[name] = self._train_one(name, train)
                except HeartMLError as e:
                    self._record_failure(name, 'training', e)

        self.trained_models = {name: trained[name] for name in ENSEMBLE_MEMBERS if name in trained}

    def _assemble_ensemble(self) -> Optional[VotingEnsemble]:
        missing = [name for name in ENSEMBLE_MEMBERS if name not in self.trained_models]
        if missing:
            reason = f"skipped: member(s) failed to train: {', '.join(missing)}"
            logger.warning(f"Ensemble {reason}")
            self.failures[ENSEMBLE_NAME] = reason
            return None
        return VotingEnsemble.from_trained(self.trained_models, self.config.ensemble_tiebreak_model)

    def _evaluate(self, predictors: Dict[str, BaseModel], test: Dataset) -> Dict[str, ModelEvaluation]:
        logger.info("=" * 60)
        logger.info(f"EVALUATION on {len(test)} test records")
        logger.info("=" * 60)

        evaluations = {}
        for name, model in predictors.items():
            try:
                evaluations[name] = self.evaluator.evaluate(DISPLAY_NAMES.get(name, name), model, test)
            except HeartMLError as e:
                self._record_failure(name, 'evaluation', e)
        return evaluations

    def _record_failure(self, name: str, stage: str, error: HeartMLError) -> None:
        logger.warning(f"  ✗ {name} failed during {stage}: {error}")
        self.failures[name] = f"{stage}: {error}"


def run_experiment(dataset: Dataset, config: Optional[ExperimentConfig] = None) -> ExperimentResult:
    """Run a fresh Experiment on ``dataset``."""
    return Experiment(config).run(dataset)
