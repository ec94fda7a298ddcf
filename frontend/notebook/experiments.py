"""
批量实验
每个实验: pending -> running -> completed / failed
代码会插入到 notebook 里再运行，严格按顺序一个接一个
"""
import logging
import threading
from typing import Callable, Iterable, Optional

from notebook.cells import CellStore
from notebook.models import CellKind, Experiment, ExperimentStatus
from notebook.output_parser import extract_accuracy
from notebook.results import RunRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, Experiment], None]


class ExperimentOrchestrator:

    def __init__(self, cell_store: CellStore, registry: RunRegistry):
        self.cell_store = cell_store
        self.registry = registry
        self.experiments: list[Experiment] = []
        self._stop = threading.Event()

    def load(self, experiments: Iterable[Experiment]):
        """开始新的一批，旧的一批直接丢弃"""
        self.experiments = list(experiments)

    def stop(self):
        """协作式取消: 正在跑的实验不会被打断，下一个不再开始"""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def run_one(self, experiment: Experiment) -> Experiment:
        experiment.status = ExperimentStatus.RUNNING
        try:
            cell_id = self.cell_store.add_cell_with_content(
                CellKind.CODE, f"# {experiment.name}\n{experiment.code}"
            )
            experiment.cell_id = cell_id
            result = self.cell_store.run_cell(cell_id)
            if result is None:
                raise RuntimeError("Execution engine is not ready")

            experiment.output = result.stdout
            if not result.success:
                experiment.status = ExperimentStatus.FAILED
                experiment.error = result.error
                return experiment

            accuracy = None
            detected = self.registry.detected_run_for_cell(cell_id)
            if detected is not None:
                accuracy = detected.accuracy
            if accuracy is None:
                accuracy = extract_accuracy(result.stdout)

            experiment.metrics_found = accuracy is not None
            experiment.accuracy = accuracy if accuracy is not None else 0.0
            experiment.status = ExperimentStatus.COMPLETED
        except Exception as e:
            logger.exception("Experiment %s crashed", experiment.name)
            experiment.status = ExperimentStatus.FAILED
            experiment.error = str(e)
        return experiment

    def run_all(self, experiments: Optional[Iterable[Experiment]] = None,
                on_progress: Optional[ProgressCallback] = None) -> list[Experiment]:
        if experiments is not None:
            self.load(experiments)
        self._stop.clear()

        total = len(self.experiments)
        for i, experiment in enumerate(self.experiments):
            if self._stop.is_set():
                logger.info("Experiment batch stopped after %d/%d", i, total)
                break
            if experiment.status != ExperimentStatus.PENDING:
                continue
            self.run_one(experiment)
            logger.info("Experiment %s %s (accuracy=%s)",
                        experiment.name, experiment.status.value, experiment.accuracy)
            if on_progress is not None:
                on_progress((i + 1) / total, experiment)
        return self.experiments

    def ranked(self) -> list[Experiment]:
        """只排 completed 的，按 accuracy 从高到低"""
        done = [e for e in self.experiments if e.status == ExperimentStatus.COMPLETED]
        return sorted(done, key=lambda e: e.accuracy or 0.0, reverse=True)

    def best(self) -> Optional[Experiment]:
        ranked = self.ranked()
        return ranked[0] if ranked else None
