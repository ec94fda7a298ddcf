"""
执行适配器: stdout 捕获、错误文本、数据集路径、跨调用保留的状态
"""
import pickle
import threading

from notebook.executor import DATA_DIR, DATASET_ALIAS, Dataset, ExecutionContext, Executor

CSV = "a,b\n1,2\n3,4\n"


class TestExecute:

    def test_captures_stdout(self, executor):
        result = executor.execute("print('hello')\nprint(1 + 1)")
        assert result.success
        assert result.stdout == "hello\n2\n"
        assert result.error is None

    def test_partial_stdout_kept_on_failure(self, executor):
        result = executor.execute("print('before')\nundefined_name")
        assert not result.success
        assert result.stdout == "before\n"
        assert result.error == "NameError: name 'undefined_name' is not defined"

    def test_syntax_error(self, executor):
        result = executor.execute("def broken(:")
        assert not result.success
        assert "SyntaxError" in result.error

    def test_system_exit_is_a_failure(self, executor):
        result = executor.execute("import sys\nsys.exit(3)")
        assert not result.success

    def test_state_persists_between_calls(self, executor):
        executor.execute("counter = 10")
        result = executor.execute("counter += 1\nprint(counter)")
        assert result.stdout == "11\n"

    def test_initialize_runs_preload_once(self, tmp_path):
        ex = Executor(ExecutionContext(workdir=str(tmp_path)), preload_script="loaded = loaded + 1 if 'loaded' in dir() else 1")
        assert not ex.is_ready
        assert ex.initialize()
        assert ex.initialize()
        assert ex.is_ready
        assert ex.context.namespace["loaded"] == 1

    def test_failed_preload_not_ready(self, tmp_path):
        ex = Executor(ExecutionContext(workdir=str(tmp_path)), preload_script="import not_a_real_module_xyz")
        assert ex.initialize() is False
        assert not ex.is_ready


class TestDataset:

    def test_dataset_readable_from_all_paths(self, executor):
        code = "\n".join(
            f"print(open({path!r}).read() == {CSV!r})"
            for path in ["houses.csv", DATASET_ALIAS, f"{DATA_DIR}/{DATASET_ALIAS}", f"{DATA_DIR}/houses.csv"]
        )
        result = executor.execute(code, Dataset(content=CSV, file_name="houses.csv"))
        assert result.success, result.error
        assert result.stdout == "True\n" * 4
        assert executor.current_file_name == "houses.csv"

    def test_file_name_path_stripped(self, executor):
        written = executor.load_dataset(CSV, "../../etc/evil.csv")
        assert all(executor.context.workdir in p.parents for p in written)
        assert executor.current_file_name == "evil.csv"

    def test_alias_only_written_once(self, executor):
        written = executor.load_dataset(CSV, DATASET_ALIAS)
        assert len(written) == len(set(written)) == 2


class TestModelState:

    def test_model_helpers(self, executor):
        assert not executor.model_exists()
        assert executor.export_model() is None

        executor.execute(
            "class Model:\n"
            "    def get_params(self):\n"
            "        return {'depth': 3}\n"
            "model = {'weights': [1, 2, 3]}\n"
            "clf = Model()\n"
        )
        assert executor.model_exists()
        assert pickle.loads(executor.export_model()) == {"weights": [1, 2, 3]}
        assert executor.model_info("clf") == {"type": "Model", "params": {"depth": "3"}}
        assert executor.model_info("missing") is None

    def test_unpicklable_model(self, executor):
        executor.execute("model = lambda x: x")
        assert executor.export_model() is None


class TestConcurrentContexts:

    def test_two_contexts_in_parallel_threads_stay_isolated(self, tmp_path):
        executors = {}
        for label in ("AAA", "BBB"):
            workdir = tmp_path / label
            ex = Executor(ExecutionContext(workdir=str(workdir)), preload_script="")
            ex.load_dataset(label)
            executors[label] = ex

        code = "import time\ntime.sleep(0.3)\nprint(open('uploaded.csv').read())"
        results = {}

        def run(label):
            results[label] = executors[label].execute(code)

        threads = [threading.Thread(target=run, args=(label,)) for label in executors]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert results["AAA"].success and results["BBB"].success
        assert results["AAA"].stdout == "AAA\n"
        assert results["BBB"].stdout == "BBB\n"
