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
Object storage setup for the application stacks: bucket, scoped policy and a
dedicated user.
"""
from typing import Any, Callable, Dict, List, Tuple

from ..CLIENTS.storage_admin_client import StorageAdminClient
from ..errors import CommandError
from ..MODELS.credential import Credential
from ..MODELS.results import StepResult, StepStatus
from ..RUNNERS.retry_executor import RetryExecutor
from ..UTILS.console import log, warn


def bucket_policy(bucket: str) -> Dict[str, Any]:
    """
    Builds a policy document allowing read/write on one bucket and its objects.

    :param bucket: Bucket name.
    :return: IAM-style policy document.
    """
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": ["s3:*"],
                "Resource": [
                    f"arn:aws:s3:::{bucket}",
                    f"arn:aws:s3:::{bucket}/*",
                ],
            }
        ],
    }


class StorageConfigurator:
    """
    Creates the bucket, policy and user, each step independently and idempotently.
    """

    def __init__(self, client: StorageAdminClient, retry: RetryExecutor):
        """
        :param client: Storage admin client, authenticated with the master credential.
        :param retry: Retry policy for each admin call.
        """
        self.client = client
        self.retry = retry

    @staticmethod
    def policy_name(bucket: str) -> str:
        """Name of the policy scoped to a bucket."""
        return f"{bucket}-readwrite"

    def configure(self, bucket: str, access_key: Credential, secret_key: Credential) -> List[StepResult]:
        """
        Runs every setup step. Later steps run even when earlier ones fail.

        :param bucket: Bucket to create.
        :param access_key: Access key of the user to create.
        :param secret_key: Secret key of the user to create.
        :return: One result per step.
        """
        log(f"Configuring object storage (bucket {bucket}, user and policy)...")
        policy = self.policy_name(bucket)
        steps: List[Tuple[str, Callable[[], Any]]] = [
            ("storage:bucket", lambda: self.client.make_bucket(bucket)),
            ("storage:policy", lambda: self.client.create_policy(policy, bucket_policy(bucket))),
            ("storage:user", lambda: self.client.add_user(access_key.value, secret_key.value)),
            ("storage:attach", lambda: self.client.attach_policy(policy, access_key.value)),
        ]
        return [self._run(name, operation) for name, operation in steps]

    def _run(self, name: str, operation: Callable[[], Any]) -> StepResult:
        existed = []

        def attempt():
            try:
                operation()
            except CommandError as e:
                # "already exists" / "already attached" mean the step is done
                if e.mentions("already"):
                    existed.append(True)
                    return
                raise

        outcome = self.retry.run(attempt)
        if outcome.succeeded:
            return StepResult(name, StepStatus.SKIPPED if existed else StepStatus.SUCCEEDED,
                              "already present" if existed else "")
        warn(f"{name} failed after {outcome.attempts} attempts: {outcome.error}")
        return StepResult(name, StepStatus.RETRYABLE_FAILURE, outcome.error or "")
