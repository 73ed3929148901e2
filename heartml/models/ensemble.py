"""Hard-voting ensemble over the four base classifiers."""

from typing import Dict, Any, Optional, Mapping
from loguru import logger

from .base import BaseModel, ModelFactory, Prediction
from ..data.dataset import Dataset, Record
from ..exceptions import InvalidHyperparameter, NotFittedError

ENSEMBLE_MEMBERS = ('logistic_regression', 'knn', 'naive_bayes', 'decision_tree')
DEFAULT_TIEBREAK_MODEL = 'logistic_regression'


class VotingEnsemble(BaseModel):
    """
    Majority vote of logistic regression, KNN, naive Bayes and a decision tree.

    Three or four agreeing votes decide the label. A 2-2 tie is resolved by
    deferring to the prediction of one designated member,
    ``tiebreak_model`` (default: logistic regression).

    Training checks every member against the train set before fitting any
    of them. An error raised while fitting (e.g. diverging logistic
    regression) leaves the earlier members trained; build a new ensemble
    to retry.

    Config:
        tiebreak_model: Member whose vote settles a 2-2 tie
        <member>_config: Hyperparameters passed to each member, e.g. ``knn_config: {k: 5}``
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 models: Optional[Mapping[str, BaseModel]] = None):
        super().__init__(config)

        self.tiebreak_model = self.config.get('tiebreak_model', DEFAULT_TIEBREAK_MODEL)
        if self.tiebreak_model not in ENSEMBLE_MEMBERS:
            raise InvalidHyperparameter('ensemble_tiebreak_model', self.tiebreak_model,
                                        f"expected one of {ENSEMBLE_MEMBERS}")

        if models is None:
            models = {
                name: ModelFactory.create_model(name, self.config.get(f'{name}_config', {}))
                for name in ENSEMBLE_MEMBERS
            }
        elif set(models) != set(ENSEMBLE_MEMBERS):
            raise ValueError(f"Ensemble requires exactly the members {ENSEMBLE_MEMBERS}, "
                             f"got {sorted(models)}")

        self.models: Dict[str, BaseModel] = {name: models[name] for name in ENSEMBLE_MEMBERS}

    @classmethod
    def from_trained(cls, models: Mapping[str, BaseModel],
                     tiebreak_model: str = DEFAULT_TIEBREAK_MODEL) -> 'VotingEnsemble':
        """
        Wrap four already-trained members without retraining them.

        Args:
            models: Trained members keyed by their ensemble names
            tiebreak_model: Member whose vote settles a 2-2 tie

        Returns:
            Ready-to-predict ensemble
        """
        ensemble = cls({'tiebreak_model': tiebreak_model}, models=models)

        untrained = [name for name, model in ensemble.models.items() if not model.fitted]
        if untrained:
            raise NotFittedError(', '.join(untrained))

        dims = {model.n_features_ for model in ensemble.models.values()}
        if len(dims) != 1:
            raise ValueError(f"Ensemble members disagree on feature dimensionality: {sorted(dims)}")

        ensemble.n_features_ = dims.pop()
        ensemble.fitted = True
        logger.info(f"Ensemble assembled from {len(ensemble.models)} trained models "
                    f"(tie-break: {tiebreak_model})")
        return ensemble

    def _check_train_set(self, dataset: Dataset) -> None:
        # every member is checked before any of them is trained
        for model in self.models.values():
            model.check_trainable(dataset)

    def _fit(self, dataset: Dataset) -> None:
        for i, (name, model) in enumerate(self.models.items(), 1):
            logger.info(f"Training member {i}/{len(self.models)}: {name}")
            model.train(dataset)

    def votes(self, record: Record) -> Dict[str, int]:
        """Label predicted by each member."""
        return {name: model.predict(record).label for name, model in self.models.items()}

    def _predict(self, record: Record) -> Prediction:
        votes = self.votes(record)
        n_ones = sum(votes.values())
        n_voters = len(votes)

        if 2 * n_ones > n_voters:
            label = 1
        elif 2 * n_ones < n_voters:
            label = 0
        else:
            label = votes[self.tiebreak_model]

        return Prediction(label=label, score=n_ones / n_voters)


ModelFactory.register_model('voting_ensemble', VotingEnsemble)
