"""
批量实验: 顺序依赖、协作式取消、排名
"""
from notebook.cells import CellStore
from notebook.experiments import ExperimentOrchestrator
from notebook.models import Experiment, ExperimentStatus
from notebook.output_parser import OutputParser
from notebook.results import RunRegistry


def dependent_experiments():
    return [
        Experiment(name="first", code="base = 41\nprint('Accuracy: 0.5')"),
        Experiment(name="second", code="value = base + 1\nprint('Accuracy: 0.7')"),
        Experiment(name="third", code="print('Accuracy:', value / 100)"),
    ]


def new_orchestrator(executor):
    store = CellStore(executor, OutputParser.tagged_only())
    return ExperimentOrchestrator(store, RunRegistry(store))


class TestRunAll:

    def test_sequential_dependency_succeeds_in_order(self, orchestrator):
        results = orchestrator.run_all(dependent_experiments())
        assert [e.status for e in results] == [ExperimentStatus.COMPLETED] * 3
        assert [e.accuracy for e in results] == [0.5, 0.7, 0.42]

    def test_reverse_order_breaks_dependency(self, executor):
        orchestrator = new_orchestrator(executor)
        experiments = list(reversed(dependent_experiments()))
        orchestrator.run_all(experiments)
        second = experiments[1]
        assert second.name == "second"
        assert second.status == ExperimentStatus.FAILED
        assert "NameError" in second.error
        assert experiments[2].status == ExperimentStatus.COMPLETED

    def test_stop_after_second(self, orchestrator):
        experiments = [Experiment(name=f"e{i}", code=f"print('Accuracy: 0.{i}')") for i in range(1, 6)]
        progress = []

        def on_progress(value, experiment):
            progress.append(value)
            if experiment is experiments[1]:
                orchestrator.stop()

        orchestrator.run_all(experiments, on_progress=on_progress)
        assert [e.status for e in experiments] == [
            ExperimentStatus.COMPLETED,
            ExperimentStatus.COMPLETED,
            ExperimentStatus.PENDING,
            ExperimentStatus.PENDING,
            ExperimentStatus.PENDING,
        ]
        assert progress == [0.2, 0.4]

    def test_new_batch_clears_stop_flag(self, orchestrator):
        orchestrator.stop()
        results = orchestrator.run_all([Experiment(name="a", code="print('Accuracy: 0.3')")])
        assert results[0].status == ExperimentStatus.COMPLETED


class TestRunOne:

    def test_code_is_inserted_into_notebook(self, orchestrator, cell_store):
        before = len(cell_store)
        experiment = orchestrator.run_one(Experiment(name="svc", code="print('Accuracy: 0.8')"))
        assert len(cell_store) == before + 1
        cell = cell_store.get_cell(experiment.cell_id)
        assert "print('Accuracy: 0.8')" in cell.content
        assert experiment.output == "Accuracy: 0.8\n"

    def test_prefers_detection_over_regex(self, orchestrator):
        experiment = orchestrator.run_one(Experiment(
            name="tagged", code="print('MODEL_TYPE: SVC')\nprint('ACCURACY: 0.66')\nprint('score: 0.1')"
        ))
        assert experiment.accuracy == 0.66
        assert experiment.metrics_found

    def test_r2_pattern(self, orchestrator):
        experiment = orchestrator.run_one(Experiment(name="ridge", code="print('R^2 score: 0.94')"))
        assert experiment.accuracy == 0.94

    def test_no_metrics_completes_with_zero(self, orchestrator):
        experiment = orchestrator.run_one(Experiment(name="quiet", code="x = 1"))
        assert experiment.status == ExperimentStatus.COMPLETED
        assert experiment.accuracy == 0.0
        assert experiment.metrics_found is False

    def test_error_fails(self, orchestrator):
        experiment = orchestrator.run_one(Experiment(name="bad", code="print('start')\nraise RuntimeError('nope')"))
        assert experiment.status == ExperimentStatus.FAILED
        assert experiment.error == "RuntimeError: nope"
        assert experiment.output == "start\n"


class TestRanking:

    def test_only_completed_ranked(self, orchestrator):
        orchestrator.run_all([
            Experiment(name="low", code="print('Accuracy: 0.4')"),
            Experiment(name="broken", code="1/0"),
            Experiment(name="high", code="print('Accuracy: 0.9')"),
        ])
        assert [e.name for e in orchestrator.ranked()] == ["high", "low"]
        assert orchestrator.best().name == "high"
