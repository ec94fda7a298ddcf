"""
代码执行适配器
在一个共享的命名空间里执行 cell 代码，捕获 stdout；
变量（比如训练好的 model）在多次执行之间保留
"""
import contextlib
import io
import logging
import pickle
import shutil
import tempfile
import threading
import time
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DATASET_ALIAS = "uploaded.csv"
DATA_DIR = "data"

# chdir 和 sys.stdout 是整个进程共享的；多个 context 同时运行时必须排队
_PROCESS_LOCK = threading.Lock()

# 预先导入的常用库，用户代码里可以直接用
PRELOAD_SCRIPT = """
import numpy as np
import pandas as pd

from sklearn.linear_model import LinearRegression, LogisticRegression, Ridge, Lasso
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor, GradientBoostingClassifier, GradientBoostingRegressor
from sklearn.svm import SVC, SVR
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor
from sklearn.naive_bayes import GaussianNB
from sklearn.cluster import KMeans, DBSCAN
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler, MinMaxScaler, LabelEncoder, OneHotEncoder
from sklearn.model_selection import train_test_split, cross_val_score, GridSearchCV
from sklearn.metrics import accuracy_score, precision_score, recall_score, f1_score, confusion_matrix
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score
from sklearn.datasets import load_iris, load_diabetes, load_wine, make_classification, make_regression
"""


@dataclass
class ExecutionResult:
    success: bool
    stdout: str
    error: Optional[str] = None


@dataclass
class Dataset:
    content: str
    file_name: str = DATASET_ALIAS


class ExecutionContext:
    """
    一个用户会话独占的解释器状态: 全局命名空间 + 数据集工作目录
    调用方必须串行使用；lock 在每次 execute 期间持有
    """

    def __init__(self, workdir: Optional[str] = None):
        self.namespace: dict[str, Any] = {"__name__": "__main__"}
        self._owns_workdir = workdir is None
        self.workdir = Path(workdir or tempfile.mkdtemp(prefix="loopyter-"))
        self.workdir.mkdir(parents=True, exist_ok=True)
        self.lock = threading.Lock()
        self.current_file_name: Optional[str] = None

    def reset(self):
        self.namespace.clear()
        self.namespace["__name__"] = "__main__"

    def close(self):
        if self._owns_workdir:
            shutil.rmtree(self.workdir, ignore_errors=True)


class Executor:
    """
    execute(code, dataset) -> ExecutionResult
    不做超时、内存限制或取消，卡住的代码会一直占着 context
    """

    def __init__(self, context: Optional[ExecutionContext] = None, preload_script: str = PRELOAD_SCRIPT):
        self.context = context or ExecutionContext()
        self.preload_script = preload_script
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def current_file_name(self) -> Optional[str]:
        return self.context.current_file_name

    def initialize(self) -> bool:
        """预热: 执行 preload 脚本；重复调用无副作用"""
        if self._ready:
            return True
        if self.preload_script.strip():
            result = self._run(self.preload_script)
            if not result.success:
                logger.error("Executor warm-up failed: %s", result.error)
                return False
        self._ready = True
        logger.info("Executor ready (workdir=%s)", self.context.workdir)
        return True

    def load_dataset(self, content: str, file_name: Optional[str] = None) -> list[Path]:
        """
        把数据集写到三个位置: 原文件名、uploaded.csv、data/uploaded.csv
        （data/ 下也放一份原文件名）
        """
        name = Path(file_name or DATASET_ALIAS).name or DATASET_ALIAS
        data_dir = self.context.workdir / DATA_DIR
        data_dir.mkdir(parents=True, exist_ok=True)

        targets = [
            self.context.workdir / name,
            self.context.workdir / DATASET_ALIAS,
            data_dir / DATASET_ALIAS,
            data_dir / name,
        ]
        written = []
        for target in targets:
            if target in written:
                continue
            target.write_text(content, encoding="utf-8")
            written.append(target)

        self.context.current_file_name = name
        logger.debug("Dataset %s written to %d paths", name, len(written))
        return written

    def execute(self, code: str, dataset: Optional[Dataset] = None) -> ExecutionResult:
        if not self._ready:
            self.initialize()
        if dataset is not None:
            self.load_dataset(dataset.content, dataset.file_name)

        start = time.perf_counter()
        result = self._run(code)
        elapsed = time.perf_counter() - start
        if result.success:
            logger.info("Cell executed in %.2fs (%d chars of output)", elapsed, len(result.stdout))
        else:
            logger.info("Cell failed after %.2fs: %s", elapsed, result.error)
        return result

    def _run(self, code: str) -> ExecutionResult:
        buffer = io.StringIO()
        with self.context.lock, _PROCESS_LOCK:
            try:
                compiled = compile(code, "<cell>", "exec")
                with contextlib.chdir(self.context.workdir), contextlib.redirect_stdout(buffer):
                    exec(compiled, self.context.namespace)
            except (Exception, SystemExit) as e:
                return ExecutionResult(success=False, stdout=buffer.getvalue(), error=_error_text(e))
        return ExecutionResult(success=True, stdout=buffer.getvalue())

    # ---- 对上一次运行留下的状态做操作 ----

    def model_exists(self, var_name: str = "model") -> bool:
        return var_name in self.context.namespace

    def model_info(self, var_name: str = "model") -> Optional[dict]:
        model = self.context.namespace.get(var_name)
        if model is None:
            return None
        params = {}
        if hasattr(model, "get_params"):
            try:
                params = {k: repr(v) for k, v in model.get_params().items()}
            except Exception as e:
                logger.warning("get_params() failed on %s: %s", var_name, e)
        return {"type": type(model).__name__, "params": params}

    def export_model(self, var_name: str = "model") -> Optional[bytes]:
        """pickle 序列化；变量不存在或不可序列化时返回 None"""
        if var_name not in self.context.namespace:
            return None
        try:
            return pickle.dumps(self.context.namespace[var_name])
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            logger.warning("Failed to export %s: %s", var_name, e)
            return None


def _error_text(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()
