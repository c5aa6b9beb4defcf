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

"""Exceptions raised by SampleGEMPy."""

__all__ = (
    "SamplingError",
    "InfeasibleModelError",
    "EmptyPolytopeError",
    "ConfigurationError",
    "DegenerateDirectionError",
    "PersistenceError",
)


class SamplingError(Exception):
    """Base class for all sampling errors."""


class InfeasibleModelError(SamplingError):
    """Error raised when no feasible flux distribution exists."""


class EmptyPolytopeError(InfeasibleModelError):
    """Error raised when the model reduction finds an empty solution space."""


class ConfigurationError(SamplingError, ValueError):
    """Error raised for invalid sampling options or sampler names."""


class DegenerateDirectionError(SamplingError):
    """Error raised when a walk direction admits no movement."""


class PersistenceError(SamplingError):
    """Error raised when a sample batch cannot be written or read.

    Args:
        message (str): Description of the failure.
        batch_index (int): 1-based index of the batch file involved.
        path (str, optional): Path of the batch file.
    """

    def __init__(self, message, batch_index, path=None):
        super().__init__(message)
        self.batch_index = batch_index
        self.path = path
