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

"""SampleGEMPy: uniform sampling of the flux space of constraint-based models."""

from samplegempy.exceptions import (
    ConfigurationError,
    DegenerateDirectionError,
    EmptyPolytopeError,
    InfeasibleModelError,
    PersistenceError,
    SamplingError,
)
from samplegempy.parameters import DEFAULT_OPTIONS, get_sampling_options
from samplegempy.polytope import Polytope
from samplegempy.reduction import ReductionMap, reduce_model
from samplegempy.samplers import ACHRSampler, WalkerState
from samplegempy.samplegem import SampleGEM, sample_cb_model

__version__ = "0.1.0"
