"""
CellStore: 增删移动、运行、识别结果挂到 cell 上
"""
from unittest.mock import Mock

import pytest

from notebook.api_client import GatewayError
from notebook.cells import CellStore
from notebook.executor import ExecutionContext, Executor
from notebook.models import Cell, CellKind
from notebook.output_parser import OutputParser


def code_cell(content="", cell_id=None):
    return Cell(id=cell_id or f"c-{content[:8]}", kind=CellKind.CODE, content=content)


class TestEditing:

    def test_initial_notebook(self, cell_store):
        assert [c.kind for c in cell_store.cells] == [CellKind.MARKDOWN, CellKind.CODE]
        assert cell_store.cells[0].content.startswith("# Welcome")

    def test_add_after_and_at_end(self, cell_store):
        first = cell_store.cells[0].id
        middle = cell_store.add_cell(CellKind.CODE, after_id=first)
        assert cell_store.index_of(middle) == 1
        assert cell_store.active_cell_id == middle

        last = cell_store.add_cell_with_content(CellKind.MARKDOWN, "notes", after_id="unknown")
        assert cell_store.cells[-1].id == last
        assert cell_store.get_cell(last).content == "notes"

    def test_cannot_delete_last_cell(self, executor):
        store = CellStore(executor, cells=[code_cell("x = 1", "only")])
        assert store.delete_cell("only") is False
        assert len(store) == 1

    def test_delete_active_moves_to_previous(self, executor):
        store = CellStore(executor, cells=[code_cell("a", "a"), code_cell("b", "b"), code_cell("c", "c")])
        store.set_active_cell("b")
        assert store.delete_cell("b")
        assert [c.id for c in store.cells] == ["a", "c"]
        assert store.active_cell_id == "a"

        store.set_active_cell("a")
        store.delete_cell("a")
        assert store.active_cell_id == "c"

    def test_move_cell(self, executor):
        store = CellStore(executor, cells=[code_cell("a", "a"), code_cell("b", "b")])
        assert store.move_cell("a", "up") is False
        assert store.move_cell("a", "down")
        assert [c.id for c in store.cells] == ["b", "a"]
        assert store.move_cell("a", "down") is False

    def test_move_cell_rejects_unknown_direction(self, executor):
        store = CellStore(executor, cells=[code_cell("a", "a"), code_cell("b", "b")])
        with pytest.raises(ValueError):
            store.move_cell("a", "left")
        assert [c.id for c in store.cells] == ["a", "b"]

    def test_convert_clears_output(self, cell_store):
        cell = cell_store.cells[1]
        cell.content = "print('hi')"
        cell_store.run_cell(cell.id)
        assert cell.output == "hi\n"
        cell_store.convert_cell_type(cell.id, CellKind.MARKDOWN)
        assert cell.output is None
        assert cell.kind == CellKind.MARKDOWN

    def test_get_all_code(self, executor):
        store = CellStore(executor, cells=[
            code_cell("a = 1", "a"),
            Cell(id="m", kind=CellKind.MARKDOWN, content="# title"),
            code_cell("   ", "blank"),
            code_cell("b = 2", "b"),
        ])
        assert store.get_all_code() == "a = 1\n\nb = 2"

    def test_set_cells_empty_restores_initial(self, cell_store):
        cell_store.set_cells([])
        assert len(cell_store) == 2
        assert cell_store.get_cell(cell_store.active_cell_id) is not None


class TestRunning:

    def test_run_attaches_tagged_detection(self, cell_store):
        cell_id = cell_store.add_cell_with_content(
            CellKind.CODE, "print('MODEL_TYPE: SVC')\nprint('ACCURACY: 0.9')"
        )
        result = cell_store.run_cell(cell_id)
        cell = cell_store.get_cell(cell_id)
        assert result.success
        assert cell.is_running is False
        assert cell.detected_model.model_type == "SVC"
        assert cell.detected_model.metrics.accuracy == 0.9

    def test_failed_run_keeps_partial_output_and_clears_detection(self, cell_store):
        cell_id = cell_store.add_cell_with_content(CellKind.CODE, "print('ACCURACY: 0.9')")
        cell_store.run_cell(cell_id)
        cell_store.update_cell_content(cell_id, "print('ACCURACY: 0.9')\nraise ValueError('boom')")
        result = cell_store.run_cell(cell_id)
        cell = cell_store.get_cell(cell_id)
        assert not result.success
        assert cell.output == "ACCURACY: 0.9\n"
        assert cell.error == "ValueError: boom"
        assert cell.detected_model is None
        assert cell.is_running is False

    def test_markdown_cell_not_run(self, cell_store):
        assert cell_store.run_cell(cell_store.cells[0].id) is None

    def test_not_ready_executor_is_noop(self, tmp_path):
        executor = Executor(ExecutionContext(workdir=str(tmp_path)), preload_script="")
        store = CellStore(executor, cells=[code_cell("print(1)", "a")])
        assert store.run_cell("a") is None
        assert store.get_cell("a").output is None

    def test_detection_failure_is_swallowed(self, executor):
        gateway = Mock()
        gateway.detect_model_output.side_effect = GatewayError("AI request failed", code="NETWORK_ERROR")
        store = CellStore(executor, OutputParser.with_remote(gateway), cells=[code_cell("print('trained')", "a")])
        result = store.run_cell("a")
        assert result.success
        assert store.get_cell("a").output == "trained\n"
        assert store.get_cell("a").detected_model is None

    def test_remote_detection_only_after_success_with_output(self, executor):
        gateway = Mock()
        store = CellStore(executor, OutputParser.with_remote(gateway), cells=[
            code_cell("x = 1", "silent"),
            code_cell("print('hi')\n1/0", "broken"),
        ])
        store.run_cell("silent")
        store.run_cell("broken")
        gateway.detect_model_output.assert_not_called()

    def test_run_all_in_order_shares_state(self, executor):
        store = CellStore(executor, cells=[
            code_cell("x = 2", "a"),
            Cell(id="m", kind=CellKind.MARKDOWN, content="text"),
            code_cell("print(x * 21)", "b"),
        ])
        results = store.run_all_cells()
        assert len(results) == 2
        assert store.get_cell("b").output == "42\n"

    def test_clear_all_outputs(self, cell_store):
        cell_id = cell_store.add_cell_with_content(CellKind.CODE, "print('MODEL_TYPE: X')")
        cell_store.run_cell(cell_id)
        cell_store.clear_all_outputs()
        cell = cell_store.get_cell(cell_id)
        assert cell.output is None
        assert cell.detected_model is None
        assert cell.content == "print('MODEL_TYPE: X')"
