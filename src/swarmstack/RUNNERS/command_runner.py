# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Execution of external commands with captured output.
"""
import subprocess
from typing import Dict, List, Optional

from ..errors import CommandError


class CommandRunner:
    """
    Runs external commands to completion and reports failures as CommandError.
    """
    def __init__(self, timeout: Optional[float] = None):
        """
        Initializes the command runner.

        Args:
            timeout (Optional[float]): Seconds before a command is killed. None waits forever.
        """
        self.timeout = timeout

    def run(self,
            command: List[str],
            env: Optional[Dict[str, str]] = None,
            cwd: Optional[str] = None,
            input: Optional[str] = None) -> subprocess.CompletedProcess:
        """
        Runs a command and waits for it to finish.

        Args:
            command (List[str]): Command and arguments to execute.
            env (Optional[Dict[str, str]]): Full environment for the process. None inherits ours.
            cwd (Optional[str]): Directory to run the command in.
            input (Optional[str]): Text fed to the command's stdin.

        Returns:
            subprocess.CompletedProcess: The finished process, with text stdout/stderr.

        Raises:
            CommandError: If the command exits non-zero or times out.
            OSError: If the executable cannot be started.
        """
        try:
            result = subprocess.run(
                command,
                env=env,
                cwd=cwd,
                input=input,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(command, -1, stderr=f"timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise CommandError(command, result.returncode, result.stdout, result.stderr)
        return result

    def succeeds(self, command: List[str], **kwargs) -> bool:
        """
        Runs a command and reports only whether it exited zero.

        Args:
            command (List[str]): Command and arguments to execute.

        Returns:
            bool: True on exit code 0, False on a non-zero exit or a missing executable.
        """
        try:
            self.run(command, **kwargs)
            return True
        except (CommandError, OSError):
            return False
