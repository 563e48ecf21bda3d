"""
Connection factory implementation
"""
from typing import Dict, Any

from ..core.interfaces import ConnectionFactory
from ..core.client import RemoteClient
from ..core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT


class RemoteConnectionFactory(ConnectionFactory):
    """RemoteClient connection factory"""

    def create(self, params: Dict[str, Any]) -> RemoteClient:
        """
        Create and connect SSH client.

        Args:
            params: Connection parameters dictionary (host, user, port,
                password, key, timeout)

        Returns:
            Connected RemoteClient instance

        Raises:
            paramiko.SSHException, OSError: If connection fails
        """
        client = RemoteClient(
            host=params["host"],
            user=params["user"],
            port=int(params.get("port") or DEFAULT_SSH_PORT),
            password=params.get("password"),
            key_path=params.get("key"),
            timeout=params.get("timeout", DEFAULT_SSH_TIMEOUT),
        )

        try:
            client.connect()
        except BaseException:
            client.close()
            raise
        return client
