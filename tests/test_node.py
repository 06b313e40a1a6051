import pytest
from scorelb.node import Metric, Node


class TestMetric:
    def test_score_is_value_times_weight(self):
        assert Metric(5, 3.5).score() == 17.5

    def test_zero_weight_contributes_nothing(self):
        assert Metric(0, 100.0).score() == 0.0

    def test_default_value_is_zero(self):
        assert Metric(3).value == 0.0

    def test_weight_is_read_only(self):
        metric = Metric(2)
        with pytest.raises(AttributeError):
            metric.weight = 10
        assert metric.weight == 2

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            Metric(-1)


class TestNode:
    def test_empty_metrics_score_zero(self):
        assert Node("http://a").score() == 0

    def test_score_sums_metrics(self):
        node = Node("http://a", {"memory": Metric(5, 2.0), "cpu": Metric(2, 1.5)})
        assert node.score() == 13.0

    def test_metric_keys_fixed(self):
        node = Node("http://a", {"memory": Metric(5)})
        with pytest.raises(TypeError):
            node.metrics["cpu"] = Metric(1)

    def test_never_probed_is_unavailable(self):
        node = Node("http://a")
        assert not node.is_available()
        assert node.is_error()

    @pytest.mark.parametrize(
        "status,error",
        [(0, True), (1, False), (200, False), (399, False), (400, True), (503, True)],
    )
    def test_is_error(self, status, error):
        node = Node("http://a", last_status=status)
        assert node.is_error() is error
        assert node.is_available() is (status != 0)

    def test_from_dict_accepts_short_keys(self):
        node = Node.from_dict(
            {"uri": "http://a", "fs": {"memory": {"mod": 5, "value": 1.0}}}
        )
        assert node.endpoint == "http://a"
        assert node.metrics["memory"].weight == 5
        assert node.score() == 5.0

    def test_from_dict_weight_shorthand(self):
        node = Node.from_dict({"endpoint": "http://a", "metrics": {"cpu": 3}})
        assert node.metrics["cpu"].weight == 3

    def test_from_dict_requires_endpoint(self):
        with pytest.raises(ValueError):
            Node.from_dict({"metrics": {}})
