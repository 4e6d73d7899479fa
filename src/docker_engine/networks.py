"""
Docker Networks API
"""

from typing import Any, Dict, List, Optional

from .exceptions import NetworkNotFound, NotFound


class Network:
    """Docker Network object"""

    def __init__(self, client, attrs: dict):
        self.client = client
        self.attrs = attrs
        self.id = attrs.get('Id', '')
        self.name = attrs.get('Name', '')
        self.driver = attrs.get('Driver', '')

    def __repr__(self):
        return f"<Network: {self.name or self.id[:12]}>"

    def reload(self):
        """Reload network data"""
        self.attrs = self.client.get(self.id).attrs
        return self

    def remove(self):
        """Remove network"""
        self.client.remove(self.id)


class NetworkCollection:
    """Docker Networks Collection"""

    def __init__(self, client):
        self.client = client

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Network]:
        """
        List networks

        Args:
            filters: dict of filters (e.g., {'name': ['mynet']})

        Returns:
            List of Network objects
        """
        data = self.client.http.get('/networks', params={'filters': filters or None}) or []
        return [Network(self, net) for net in data]

    def get(self, network_id: str) -> Network:
        """
        Get network by ID or name

        Raises:
            NetworkNotFound: If network not found
        """
        try:
            data = self.client.http.get(f'/networks/{network_id}')
        except NotFound as e:
            raise NetworkNotFound(f"Network not found: {network_id}", status_code=404,
                                  method=e.method, uri=e.uri) from e
        return Network(self, data)

    def create(self, name: str, driver: str = 'bridge', internal: bool = False,
               attachable: bool = True, options: Optional[Dict[str, str]] = None,
               labels: Optional[Dict[str, str]] = None,
               ipam: Optional[Dict[str, Any]] = None) -> Network:
        """
        Create network

        Args:
            name: Network name
            driver: Network driver
            internal: Restrict external access
            attachable: Allow manual container attachment
            options: Driver options dict
            labels: Labels dict
            ipam: IPAM config dict

        Returns:
            Network object
        """
        data = {
            'Name': name,
            'Driver': driver,
            'Internal': internal,
            'Attachable': attachable,
            'CheckDuplicate': True,
            'Options': options,
            'Labels': labels,
            'IPAM': ipam,
        }
        result = self.client.http.post('/networks/create', data=data)
        return self.get(result['Id'])

    def remove(self, network_id: str):
        """Remove network"""
        try:
            self.client.http.delete(f'/networks/{network_id}')
        except NotFound as e:
            raise NetworkNotFound(f"Network not found: {network_id}", status_code=404,
                                  method=e.method, uri=e.uri) from e

    def prune(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Remove unused networks

        Args:
            filters: Filters to use

        Returns:
            Dict with deleted networks info
        """
        return self.client.http.post('/networks/prune', params={'filters': filters or None})
