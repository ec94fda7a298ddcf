"""
排行榜
每次读取都从当前 cell 列表 / 已保存 runs 重新计算，不缓存任何状态
"""
from typing import Callable, Optional

from notebook.cells import CellStore
from notebook.models import Cell, DetectedRun


def effective_accuracy(cell: Cell) -> Optional[float]:
    model = cell.detected_model
    if model is None or not model.detected:
        return None
    return model.effective_accuracy


def _to_detected_run(cell: Cell, accuracy: float) -> DetectedRun:
    model = cell.detected_model
    return DetectedRun(
        cell_id=cell.id,
        model_type=model.model_type,
        accuracy=accuracy,
        precision=model.metrics.precision,
        recall=model.metrics.recall,
        f1_score=model.metrics.f1_score,
        confusion_matrix=model.confusion_matrix,
        summary=model.summary,
        dataset_info=model.dataset_info,
    )


class RunRegistry:

    def __init__(self, cell_store: CellStore, saved_runs_source: Optional[Callable[[], list[dict]]] = None):
        self.cell_store = cell_store
        self.saved_runs_source = saved_runs_source

    def detected_runs(self) -> list[DetectedRun]:
        """按 cell 顺序列出所有识别出模型且有可用分数的 cell"""
        runs = []
        for cell in self.cell_store.cells:
            accuracy = effective_accuracy(cell)
            if accuracy is not None:
                runs.append(_to_detected_run(cell, accuracy))
        return runs

    def leaderboard(self) -> list[DetectedRun]:
        # sorted 是稳定排序，分数相同时保持 cell 顺序
        return sorted(self.detected_runs(), key=lambda r: r.accuracy, reverse=True)

    def best_run(self) -> Optional[DetectedRun]:
        best = None
        for run in self.detected_runs():
            if best is None or run.accuracy > best.accuracy:
                best = run
        return best

    def latest_run(self) -> Optional[DetectedRun]:
        """cell 顺序里最后一个，不是时间上最近的"""
        runs = self.detected_runs()
        return runs[-1] if runs else None

    def total_detected_models(self) -> int:
        return len(self.detected_runs())

    def detected_run_for_cell(self, cell_id: str) -> Optional[DetectedRun]:
        cell = self.cell_store.get_cell(cell_id)
        if cell is None:
            return None
        accuracy = effective_accuracy(cell)
        return _to_detected_run(cell, accuracy) if accuracy is not None else None

    def saved_leaderboard(self) -> list[dict]:
        """已保存的 runs，单独排序，不和 cell 排行榜合并"""
        if self.saved_runs_source is None:
            return []
        runs = self.saved_runs_source() or []
        return sorted(runs, key=lambda r: r.get("accuracy") or 0.0, reverse=True)
