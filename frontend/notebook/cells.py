"""
Notebook 的 cell 列表
增删、移动、运行；notebook 永远至少保留一个 cell
"""
import logging
import uuid
from typing import Literal, Optional

from notebook.api_client import GatewayError
from notebook.executor import ExecutionResult, Executor
from notebook.models import Cell, CellKind
from notebook.output_parser import OutputParser

logger = logging.getLogger(__name__)

WELCOME_MARKDOWN = """# Welcome to Loopyter

Upload a CSV, then write code below or ask the model builder to generate it.
Print `MODEL_TYPE:`, `ACCURACY:` and `CONFUSION_MATRIX:` lines to get your run on the leaderboard."""


def new_cell_id() -> str:
    return f"cell-{uuid.uuid4().hex[:12]}"


def initial_cells() -> list[Cell]:
    return [
        Cell(id=new_cell_id(), kind=CellKind.MARKDOWN, content=WELCOME_MARKDOWN),
        Cell(id=new_cell_id(), kind=CellKind.CODE, content=""),
    ]


class CellStore:

    def __init__(self, executor: Executor, parser: Optional[OutputParser] = None,
                 cells: Optional[list[Cell]] = None):
        self.executor = executor
        self.parser = parser
        self.cells: list[Cell] = list(cells) if cells else initial_cells()
        self.active_cell_id: Optional[str] = self.cells[0].id

    # ---- 查询 ----

    def __len__(self):
        return len(self.cells)

    def get_cell(self, cell_id: str) -> Optional[Cell]:
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        return None

    def index_of(self, cell_id: str) -> int:
        for i, cell in enumerate(self.cells):
            if cell.id == cell_id:
                return i
        return -1

    def get_all_code(self) -> str:
        return "\n\n".join(c.content for c in self.cells if c.is_code and c.content.strip())

    # ---- 编辑 ----

    def add_cell(self, kind: CellKind = CellKind.CODE, after_id: Optional[str] = None) -> str:
        return self.add_cell_with_content(kind, "", after_id)

    def add_cell_with_content(self, kind: CellKind, content: str, after_id: Optional[str] = None) -> str:
        """after_id 存在时插到它后面，否则追加到末尾；新 cell 成为当前 cell"""
        cell = Cell(id=new_cell_id(), kind=CellKind(kind), content=content)
        index = self.index_of(after_id) if after_id else -1
        if index >= 0:
            self.cells.insert(index + 1, cell)
        else:
            self.cells.append(cell)
        self.active_cell_id = cell.id
        return cell.id

    def delete_cell(self, cell_id: str) -> bool:
        if len(self.cells) <= 1:
            return False
        index = self.index_of(cell_id)
        if index < 0:
            return False
        del self.cells[index]
        if self.active_cell_id == cell_id:
            self.active_cell_id = self.cells[max(0, index - 1)].id
        return True

    def move_cell(self, cell_id: str, direction: Literal["up", "down"]) -> bool:
        """direction: "up" / "down"；已经在边界时不动"""
        if direction not in ("up", "down"):
            raise ValueError(f"Unknown direction: {direction!r}")
        index = self.index_of(cell_id)
        if index < 0:
            return False
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self.cells):
            return False
        self.cells[index], self.cells[target] = self.cells[target], self.cells[index]
        return True

    def update_cell_content(self, cell_id: str, content: str) -> bool:
        cell = self.get_cell(cell_id)
        if cell is None:
            return False
        cell.content = content
        return True

    def set_active_cell(self, cell_id: str) -> bool:
        if self.get_cell(cell_id) is None:
            return False
        self.active_cell_id = cell_id
        return True

    def convert_cell_type(self, cell_id: str, kind: CellKind) -> bool:
        cell = self.get_cell(cell_id)
        if cell is None:
            return False
        cell.kind = CellKind(kind)
        cell.output = None
        cell.error = None
        cell.detected_model = None
        return True

    def set_cells(self, cells: list[Cell]):
        """整体替换（比如从导入的 notebook 恢复）；空列表时回到初始 notebook"""
        self.cells = list(cells) if cells else initial_cells()
        if self.get_cell(self.active_cell_id or "") is None:
            self.active_cell_id = self.cells[0].id

    # ---- 运行 ----

    def run_cell(self, cell_id: str) -> Optional[ExecutionResult]:
        """
        只运行 code cell，且执行器必须已就绪；否则什么都不做，返回 None
        运行成功且有输出时才做模型识别，识别失败只记日志
        """
        cell = self.get_cell(cell_id)
        if cell is None or not cell.is_code or not self.executor.is_ready:
            return None

        cell.is_running = True
        cell.output = None
        cell.error = None
        cell.detected_model = None
        try:
            result = self.executor.execute(cell.content)
            cell.output = result.stdout
            cell.error = result.error
            if result.success and result.stdout.strip() and self.parser is not None:
                try:
                    cell.detected_model = self.parser.parse(cell.content, result.stdout)
                except GatewayError as e:
                    logger.warning("Model detection failed for %s: %s", cell_id, e)
            return result
        finally:
            cell.is_running = False

    def run_all_cells(self) -> list[ExecutionResult]:
        """按 notebook 顺序逐个运行 code cell，后面的 cell 可能依赖前面留下的变量"""
        results = []
        for cell in list(self.cells):
            if not cell.is_code:
                continue
            result = self.run_cell(cell.id)
            if result is not None:
                results.append(result)
        return results

    def clear_all_outputs(self):
        for cell in self.cells:
            cell.output = None
            cell.error = None
            cell.detected_model = None
