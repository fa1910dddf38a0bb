# This software is distributed under a Modified BSD License as follows:
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#     * Redistributions of source code must retain the above copyright
#       notice, this list of conditions and the following disclaimer.
#     * Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#     * Neither the authors' names nor the
#       names of its contributors may be used to endorse or promote products
#       derived from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE AUTHORS ``AS IS'' AND ANY
# EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
# WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE AUTHORS BE LIABLE FOR ANY
# DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES
# (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND
# ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
# (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
# SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#

# read_imu_profile - inputs an IMU measurement profile in the following .csv format
# Column 1: time (sec)
# Column 2: specific force along body X (m/s^2)
# Column 3: specific force along body Y (m/s^2)
# Column 4: specific force along body Z (m/s^2)
# Column 5: angular rate about body X (rad/s)
# Column 6: angular rate about body Y (rad/s)
# Column 7: angular rate about body Z (rad/s)
#
# read_gnss_profile - inputs a GNSS position/velocity profile in the following .csv format
# Column 1: time (sec)
# Columns 2-4: ECEF position X, Y, Z (m)
# Columns 5-7: ECEF velocity X, Y, Z (m/s)
#
# Both files carry a header row.
import logging
from pandas import read_csv

logger = logging.getLogger(__name__)

# Columns of both profile formats
PROFILE_COLUMNS = 7


def _read_profile(input_profile_name, kind):
    # Read in the profile in .csv format
    df = read_csv(input_profile_name)
    in_profile = df.values.astype(float)

    # Check number of columns is correct
    if in_profile.shape[1] != PROFILE_COLUMNS:
        logger.error("%s profile %s has %d columns, expected %d", kind, input_profile_name, in_profile.shape[1],
                     PROFILE_COLUMNS)
        raise ValueError("{} profile has the wrong number of columns".format(kind))

    return in_profile


def read_imu_profile(input_profile_name):
    return _read_profile(input_profile_name, "IMU")


def read_gnss_profile(input_profile_name):
    return _read_profile(input_profile_name, "GNSS")
