import pytest

from dns_cluster.distribution import (
    NOT_DISTRIBUTED,
    RELEASE_NOT_DISTRIBUTED,
    RELEASE_SHORT_NAMES,
    DistributionState,
    distribution_warning,
    name_domain_for,
)


class TestNameDomain:
    """Test classifying node names as long or short names."""

    @pytest.mark.parametrize(
        "node_name, name_domain",
        [
            ("app@10.0.0.1", "longnames"),
            ("app@fdaa:0:36c9:a7b:db:400e:1352:1", "longnames"),
            ("app@web1.internal", "longnames"),
            ("app@web1", "shortnames"),
            ("app", "shortnames"),
            (None, "shortnames"),
        ],
    )
    def test_name_domain_for(self, node_name, name_domain):
        assert name_domain_for(node_name) == name_domain


class TestDistributionWarning:
    """Test the startup distribution diagnostic."""

    def test_no_distribution_layer_is_silent(self):
        assert distribution_warning(None, is_release=True) is None

    def test_not_started_in_release(self):
        state = DistributionState(started=False)

        assert distribution_warning(state, is_release=True) == RELEASE_NOT_DISTRIBUTED

    def test_not_started_outside_release(self):
        state = DistributionState(started=False)

        assert distribution_warning(state, is_release=False) == NOT_DISTRIBUTED

    def test_short_names_outside_release(self):
        state = DistributionState(started=True, name_domain="shortnames")

        assert distribution_warning(state, is_release=False) == NOT_DISTRIBUTED

    def test_short_names_in_release(self):
        state = DistributionState(started=True, name_domain="shortnames")

        assert distribution_warning(state, is_release=True) == RELEASE_SHORT_NAMES

    @pytest.mark.parametrize("is_release", [True, False])
    def test_long_names_are_silent(self, is_release):
        state = DistributionState(started=True, name_domain="longnames")

        assert distribution_warning(state, is_release=is_release) is None
