"""
Docker Containers API
"""

from typing import Any, Dict, List, Optional, Union

from .exceptions import ContainerNotFound, NotFound
from .log_stream import LogStream
from .serialization import JSONCodec, parse_created
from .tar_utils import create_tar_from_file


class Container:
    """Docker Container object"""

    def __init__(self, attrs: Dict[str, Any], client):
        self.attrs = attrs
        self.client = client
        self.id = attrs.get('Id', '')
        self.short_id = self.id[:12] if self.id else ''
        self.name = attrs.get('Name', attrs.get('Names', [''])[0] if attrs.get('Names') else '').lstrip('/')

        # Inspect returns a State dict, list returns State/Status strings
        state = attrs.get('State', {})
        if isinstance(state, dict):
            self.status = state.get('Status', 'unknown')
        else:
            self.status = attrs.get('Status', state if isinstance(state, str) else 'unknown')

        self.image = attrs.get('Image', attrs.get('ImageID', ''))
        self.labels = attrs.get('Labels') or attrs.get('Config', {}).get('Labels') or {}
        self.tty = bool(attrs.get('Config', {}).get('Tty', False))
        self.created = parse_created(attrs.get('Created'))
        self.exposed_ports = JSONCodec.to_set(attrs.get('Config', {}).get('ExposedPorts')) or set()

    def __repr__(self):
        return f"<Container: {self.name or self.short_id}>"

    def start(self):
        """Start this container"""
        return self.client.start(self.id)

    def stop(self, timeout: int = 10):
        """Stop this container"""
        return self.client.stop(self.id, timeout=timeout)

    def restart(self, timeout: int = 10):
        """Restart this container"""
        return self.client.restart(self.id, timeout=timeout)

    def remove(self, force: bool = False, v: bool = False):
        """Remove this container"""
        return self.client.remove(self.id, force=force, v=v)

    def kill(self, signal: str = 'SIGKILL'):
        """Kill this container"""
        return self.client.kill(self.id, signal=signal)

    def wait(self) -> Dict[str, Any]:
        """Block until this container stops"""
        return self.client.wait(self.id)

    def logs(self, **kwargs):
        """Get container logs; see ContainerCollection.logs"""
        return self.client.logs(self.id, **kwargs)

    def attach(self, **kwargs) -> LogStream:
        """Attach to this container; see ContainerCollection.attach"""
        return self.client.attach(self.id, **kwargs)

    def stats(self, stream: bool = True):
        """Resource usage statistics"""
        return self.client.stats(self.id, stream=stream)

    def exec_run(self, cmd, **kwargs):
        """Execute command in container"""
        return self.client.exec_run(self.id, cmd, **kwargs)

    def put_archive(self, path: str, data: bytes):
        """Upload tar archive to container"""
        return self.client.put_archive(self.id, path, data)

    def get_archive(self, path: str) -> bytes:
        """Download path from container as tar archive"""
        return self.client.get_archive(self.id, path)


class ContainerCollection:
    """Docker Containers collection"""

    def __init__(self, client):
        self.client = client

    def _not_found(self, container_id: str, error: NotFound) -> ContainerNotFound:
        return ContainerNotFound(f"Container not found: {container_id}", status_code=404,
                                 method=error.method, uri=error.uri)

    def _call(self, method: str, container_id: str, path: str = '', **kwargs):
        try:
            return self.client.http.request(method, f'/containers/{container_id}{path}', **kwargs)
        except NotFound as e:
            raise self._not_found(container_id, e) from e

    def list(self, all: bool = False, limit: Optional[int] = None,
             filters: Optional[Dict[str, Any]] = None) -> List[Container]:
        """
        List containers

        Args:
            all: Show all containers (including stopped)
            limit: Maximum number of containers to return
            filters: Filters to apply

        Returns:
            List of Container objects
        """
        params = {'all': all, 'limit': limit, 'filters': filters or None}
        containers_data = self.client.http.get('/containers/json', params=params) or []
        return [Container(c_data, self) for c_data in containers_data]

    def get(self, container_id: str) -> Container:
        """
        Get container by ID or name

        Raises:
            ContainerNotFound: If container not found
        """
        return Container(self._call('GET', container_id, '/json'), self)

    def create(self, image: str, name: Optional[str] = None,
               command: Optional[Union[str, List[str]]] = None,
               environment: Optional[Dict[str, str]] = None,
               volumes: Optional[Dict[str, Dict[str, str]]] = None,
               ports: Optional[Dict[str, int]] = None,
               stdin_open: bool = False, tty: bool = False,
               network_mode: Optional[str] = None, hostname: Optional[str] = None,
               auto_remove: bool = False, platform: Optional[str] = None,
               **kwargs) -> Container:
        """
        Create container

        Args:
            image: Image name or ID
            name: Container name
            command: Command to run (a string runs through sh -c)
            environment: Environment variables
            volumes: Volume mounts {host_path: {'bind': container_path, 'mode': 'rw'}}
            ports: Port bindings {container_port: host_port}
            stdin_open: Keep STDIN open
            tty: Allocate TTY
            network_mode: Network mode
            hostname: Container hostname
            auto_remove: Auto-remove when stopped
            platform: Platform (e.g., linux/amd64)
            **kwargs: Additional raw config keys

        Returns:
            Container object
        """
        config: Dict[str, Any] = {
            'Image': image,
            'Tty': tty,
            'OpenStdin': stdin_open,
            'StdinOnce': False,
            'AttachStdin': stdin_open,
            'AttachStdout': True,
            'AttachStderr': True,
            'Hostname': hostname,
        }

        if command:
            config['Cmd'] = ['sh', '-c', command] if isinstance(command, str) else list(command)

        if environment:
            config['Env'] = [f"{k}={v}" for k, v in environment.items()]

        host_config: Dict[str, Any] = {}
        if auto_remove:
            host_config['AutoRemove'] = auto_remove
        if network_mode:
            host_config['NetworkMode'] = network_mode

        if volumes:
            host_config['Binds'] = [
                f"{host_path}:{mount.get('bind', '')}:{mount.get('mode', 'rw')}"
                for host_path, mount in volumes.items()
            ]

        if ports:
            exposed = set()
            port_bindings = {}
            for container_port, host_port in ports.items():
                port_key = f"{container_port}/tcp" if '/' not in str(container_port) else str(container_port)
                exposed.add(port_key)
                port_bindings[port_key] = [{'HostPort': str(host_port)}]
            # the codec writes sets as {"80/tcp": {}}
            config['ExposedPorts'] = exposed
            host_config['PortBindings'] = port_bindings

        if host_config:
            config['HostConfig'] = host_config

        config.update(kwargs)

        params = {'name': name, 'platform': platform}
        result = self.client.http.post('/containers/create', params=params, data=config)
        return self.get(result.get('Id'))

    def run(self, image: str, command: Optional[Union[str, List[str]]] = None, **kwargs) -> Container:
        """Create and start container"""
        container = self.create(image, command=command, **kwargs)
        container.start()
        return container

    def start(self, container_id: str):
        """Start container"""
        return self._call('POST', container_id, '/start')

    def stop(self, container_id: str, timeout: int = 10):
        """Stop container"""
        return self._call('POST', container_id, '/stop', params={'t': timeout},
                          timeout=self.client.config.timeout + timeout)

    def restart(self, container_id: str, timeout: int = 10):
        """Restart container"""
        return self._call('POST', container_id, '/restart', params={'t': timeout},
                          timeout=self.client.config.timeout + timeout)

    def remove(self, container_id: str, force: bool = False, v: bool = False):
        """Remove container"""
        return self._call('DELETE', container_id, params={'force': force, 'v': v})

    def kill(self, container_id: str, signal: str = 'SIGKILL'):
        """Kill container"""
        return self._call('POST', container_id, '/kill', params={'signal': signal})

    def wait(self, container_id: str) -> Dict[str, Any]:
        """
        Block until container stops

        Returns:
            {'StatusCode': ..., 'Error': ...}
        """
        return self._call('POST', container_id, '/wait', timeout=None)

    def logs(self, container_id: str, stdout: bool = True, stderr: bool = True,
             stream: bool = False, timestamps: bool = False, tail: str = 'all',
             since: Optional[int] = None, follow: bool = False):
        """
        Get container logs

        Args:
            container_id: Container ID
            stdout: Return stdout stream
            stderr: Return stderr stream
            stream: Return a LogStream instead of the collected text
            timestamps: Show timestamps
            tail: Number of lines to show from end ('all' for all)
            since: Show logs since timestamp (Unix epoch)
            follow: Follow log output

        Returns:
            Log text, or a LogStream if stream=True
        """
        params = {
            'stdout': stdout,
            'stderr': stderr,
            'timestamps': timestamps,
            'tail': tail,
            'follow': follow,
            'since': since or None,
        }
        headers = {'Accept': 'application/vnd.docker.raw-stream'}
        response = self._call('GET', container_id, '/logs', params=params,
                              headers=headers, stream=True)

        if stream:
            return self.client.log_stream(response)

        with self.client.log_stream(response, header_timeout=None) as logs:
            return logs.read_fully()

    def attach(self, container_id: str, stdout: bool = True, stderr: bool = True,
               logs: bool = False, stdin: bool = False) -> LogStream:
        """
        Attach to container output

        Args:
            container_id: Container ID
            stdout: Attach to stdout
            stderr: Attach to stderr
            logs: Replay output produced before attaching
            stdin: Request stdin frames as well

        Returns:
            LogStream of the container's output
        """
        params = {'stdout': stdout, 'stderr': stderr, 'stdin': stdin, 'logs': logs, 'stream': True}
        response = self._call('POST', container_id, '/attach', params=params,
                              stream=True, timeout=None)
        return self.client.log_stream(response)

    def stats(self, container_id: str, stream: bool = True):
        """
        Resource usage statistics

        Returns:
            JSONStream of stats dicts if stream=True, otherwise one dict
        """
        if not stream:
            return self._call('GET', container_id, '/stats', params={'stream': False})
        response = self._call('GET', container_id, '/stats', params={'stream': True},
                              stream=True, timeout=None)
        return self.client.json_stream(response)

    def exec_run(self, container_id: str, cmd: Union[str, List[str]], stdout: bool = True,
                 stderr: bool = True, stdin: bool = False, tty: bool = False,
                 privileged: bool = False, user: str = '',
                 environment: Optional[Dict[str, str]] = None,
                 workdir: str = '', detach: bool = False, stream: bool = False):
        """
        Execute command in running container

        Args:
            container_id: Container ID
            cmd: Command to execute (a string runs through sh -c)
            stdout: Attach to stdout
            stderr: Attach to stderr
            stdin: Attach to stdin
            tty: Allocate TTY
            privileged: Run as privileged
            user: User to run as
            environment: Environment variables
            workdir: Working directory
            detach: Run in background
            stream: Return a LogStream instead of the collected output

        Returns:
            None if detached, output text, or a LogStream if stream=True
        """
        exec_config: Dict[str, Any] = {
            'AttachStdout': stdout,
            'AttachStderr': stderr,
            'AttachStdin': stdin,
            'Tty': tty,
            'Privileged': privileged,
            'Cmd': list(cmd) if isinstance(cmd, list) else ['sh', '-c', cmd],
        }

        if user:
            exec_config['User'] = user
        if environment:
            exec_config['Env'] = [f"{k}={v}" for k, v in environment.items()]
        if workdir:
            exec_config['WorkingDir'] = workdir

        exec_result = self._call('POST', container_id, '/exec', data=exec_config)
        exec_id = exec_result.get('Id')

        start_config = {'Detach': detach, 'Tty': tty}
        if detach:
            return self.client.http.post(f'/exec/{exec_id}/start', data=start_config)

        response = self.client.http.post(f'/exec/{exec_id}/start', data=start_config,
                                         stream=True, timeout=None)
        if stream:
            return self.client.log_stream(response)
        with self.client.log_stream(response, header_timeout=None) as output:
            return output.read_fully()

    def put_archive(self, container_id: str, path: str, data: bytes) -> bool:
        """
        Upload tar archive to container

        Args:
            container_id: Container ID
            path: Path in container where to extract archive
            data: Tar archive as bytes

        Returns:
            True if successful
        """
        headers = {'Content-Type': 'application/x-tar'}
        self._call('PUT', container_id, '/archive', params={'path': path},
                   data=data, headers=headers)
        return True

    def put_file(self, container_id: str, path: str, file_path: str) -> bool:
        """Copy a local file into the container directory path"""
        return self.put_archive(container_id, path, create_tar_from_file(file_path))

    def get_archive(self, container_id: str, path: str) -> bytes:
        """
        Download path from container as tar archive

        Args:
            container_id: Container ID
            path: Path in container to download

        Returns:
            Tar archive as bytes
        """
        response = self._call('GET', container_id, '/archive', params={'path': path}, stream=True)
        try:
            return response.read()
        finally:
            response.release()
