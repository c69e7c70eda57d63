from evaluation.harness import run_evaluation_suite, run_smoke_checks


def test_evaluation_scenarios_pass():
    results = run_evaluation_suite()
    assert results, "Expected evaluation scenarios to run"
    for result in results:
        assert result["passed"], f"Scenario {result['scenario']} failed checks: {result['checks']}"


def test_cold_feedback_converges_upwards_one_degree_at_a_time():
    results = {result["scenario"]: result for result in run_evaluation_suite()}
    assert results["cold_commuter"]["trajectories"]["Wool coat"] == [10, 11, 12, 13, 14]
    assert results["mild_complaints"]["trajectories"]["Linen shirt"] == [15, 15, 15, 15]


def test_smoke_checks_report_each_scenario():
    lines = run_smoke_checks()
    assert all(line.endswith("passed") for line in lines)
