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
Sampling Options for SampleGEMPy.

This module holds the default options of the sampling workflow and the helpers
that merge, normalise and validate user supplied options.

Functions:
    - get_sampling_options: Merge user options with the defaults and validate them.
    - validate_options: Check option types, ranges and cross-option constraints.
    - load_options: Read options from a YAML file.
"""

import math

import yaml

from samplegempy.exceptions import ConfigurationError

DEFAULT_OPTIONS = {
    "n_warmup_points": 5000,
    "n_files": 10,
    "n_points_per_file": 1000,
    "n_steps_per_point": 200,
    "n_points_returned": 2000,
    "n_files_skipped": 2,
    "remove_loops_flag": False,
    "remove_loop_samples_flag": True,
    "reduction_tolerance": 1e-6,
    "projection_interval": 10,
    "max_direction_redraws": 1000,
    "n_processes": 1,
    "solver": None,
    "seed": None,
    "verbose": True,
}

# Option names used by the COBRA Toolbox sampleCbModel
OPTION_ALIASES = {
    "nWarmupPoints": "n_warmup_points",
    "nFiles": "n_files",
    "nPointsPerFile": "n_points_per_file",
    "nStepsPerPoint": "n_steps_per_point",
    "nPointsReturned": "n_points_returned",
    "nFilesSkipped": "n_files_skipped",
    "removeLoopsFlag": "remove_loops_flag",
    "removeLoopSamplesFlag": "remove_loop_samples_flag",
}

_POSITIVE_INTS = (
    "n_warmup_points",
    "n_files",
    "n_points_per_file",
    "n_steps_per_point",
    "n_points_returned",
    "projection_interval",
    "max_direction_redraws",
    "n_processes",
)
_FLAGS = ("remove_loops_flag", "remove_loop_samples_flag", "verbose")


def get_sampling_options(options=None):
    """
    Build the full set of sampling options.

    Args:
        options (dict, optional): User overrides. Keys may use either the
            snake_case names of `DEFAULT_OPTIONS` or the camelCase names in
            `OPTION_ALIASES`.

    Returns:
        dict: A new dictionary with every option set.

    Raises:
        ConfigurationError: If an option is unknown or invalid.
    """
    sampling_opts = dict(DEFAULT_OPTIONS)
    for key, value in (options or {}).items():
        name = OPTION_ALIASES.get(key, key)
        if name not in DEFAULT_OPTIONS:
            raise ConfigurationError(f"Unknown sampling option: {key}")
        sampling_opts[name] = value

    validate_options(sampling_opts)
    return sampling_opts


def points_per_file_loaded(sampling_opts):
    """
    Number of points taken from each retained batch file.

    Raises:
        ConfigurationError: If no file would be retained or if the retained
            files cannot supply the requested number of points.
    """
    n_files = sampling_opts["n_files"]
    n_skipped = sampling_opts["n_files_skipped"]
    if n_skipped >= n_files:
        raise ConfigurationError(
            f"n_files_skipped ({n_skipped}) must be smaller than n_files ({n_files})"
        )

    per_file = math.ceil(sampling_opts["n_points_returned"] / (n_files - n_skipped))
    if per_file > sampling_opts["n_points_per_file"]:
        raise ConfigurationError(
            "Number of points loaded from each file exceeds the number of points "
            f"per file ({per_file} > {sampling_opts['n_points_per_file']}); "
            "increase n_points_per_file or decrease n_points_returned"
        )
    return per_file


def validate_options(sampling_opts):
    """
    Validate a complete options dictionary.

    Raises:
        ConfigurationError: If any option has a wrong type or value.
    """
    for key in _POSITIVE_INTS:
        value = sampling_opts[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"{key} must be a positive integer, got {value!r}")

    skipped = sampling_opts["n_files_skipped"]
    if isinstance(skipped, bool) or not isinstance(skipped, int) or skipped < 0:
        raise ConfigurationError(
            f"n_files_skipped must be a non-negative integer, got {skipped!r}"
        )

    for key in _FLAGS:
        if not isinstance(sampling_opts[key], bool):
            raise ConfigurationError(f"{key} must be a boolean")

    tolerance = sampling_opts["reduction_tolerance"]
    if not isinstance(tolerance, (int, float)) or tolerance <= 0:
        raise ConfigurationError("reduction_tolerance must be a positive number")

    seed = sampling_opts["seed"]
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigurationError("seed must be an integer or None")

    points_per_file_loaded(sampling_opts)


def load_options(config_file):
    """Load sampling options from a YAML file and validate them."""
    with open(config_file, "r") as f:
        config = yaml.safe_load(f) or {}
    return get_sampling_options(config)
