# =============================================================================
# NETWORKS API TESTS
# =============================================================================

import pytest

from docker_engine.exceptions import NetworkNotFound, NotFound


class TestNetworks:
    """Test network operations."""

    def test_list(self, client):
        """list should wrap every network."""
        client.http.get.return_value = [{"Id": "n1", "Name": "bridge", "Driver": "bridge"}]

        networks = client.networks.list(filters={"driver": ["bridge"]})

        assert [n.name for n in networks] == ["bridge"]
        client.http.get.assert_called_once_with("/networks", params={"filters": {"driver": ["bridge"]}})

    def test_create(self, client):
        """create should post the config and inspect the new network."""
        client.http.post.return_value = {"Id": "n2"}
        client.http.get.return_value = {"Id": "n2", "Name": "backend", "Driver": "bridge"}

        network = client.networks.create("backend", internal=True, labels={"tier": "db"})

        assert network.name == "backend"
        data = client.http.post.call_args.kwargs["data"]
        assert data["Name"] == "backend"
        assert data["Internal"] is True
        assert data["Labels"] == {"tier": "db"}
        client.http.get.assert_called_once_with("/networks/n2")

    def test_get_not_found(self, client):
        """A 404 should become NetworkNotFound."""
        client.http.get.side_effect = NotFound("missing", status_code=404)

        with pytest.raises(NetworkNotFound):
            client.networks.get("missing")

    def test_remove_via_object(self, client):
        """Network.remove should delete by ID."""
        client.http.get.return_value = {"Id": "n3", "Name": "tmp"}

        client.networks.get("tmp").remove()

        client.http.delete.assert_called_once_with("/networks/n3")

    def test_prune(self, client):
        """prune should return the daemon report."""
        client.http.post.return_value = {"NetworksDeleted": ["tmp"]}

        assert client.networks.prune() == {"NetworksDeleted": ["tmp"]}
        client.http.post.assert_called_once_with("/networks/prune", params={"filters": None})
