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

# Call-site conveniences around lc_kf_epoch. Each one converts its arguments
# and hands over to lc_kf_epoch or lc_kf_epoch_into.
import datetime
import math
import numpy as np
from Integration.engine.kalman_filter import lc_kf_epoch, lc_kf_epoch_into


def interval_to_seconds(tor):
    """
    Converts a propagation interval given as seconds, datetime.timedelta or
    numpy.timedelta64 to seconds
    """
    if isinstance(tor, datetime.timedelta):
        return tor.total_seconds()
    if isinstance(tor, np.timedelta64):
        if np.isnat(tor):
            raise ValueError("Propagation interval is not a time")
        return float(tor / np.timedelta64(1, 's'))
    return tor


def latitude_to_radians(L_b, degrees=False):
    if L_b is None:
        return None
    return math.radians(L_b) if degrees else L_b


def split_pv(GNSS_pv_eb_e):
    """
    Splits a combined 6-element position-velocity solution into (3x1)
    position (m) and velocity (m/s)
    """
    pv = np.asarray(GNSS_pv_eb_e, dtype=float).ravel()
    if pv.size != 6:
        raise ValueError("Position-velocity solution must have 6 elements, got {}".format(pv.size))
    return pv[0:3].reshape((3, 1)), pv[3:6].reshape((3, 1))


def lc_kf_epoch_from(GNSS_r_eb_e, GNSS_v_eb_e, tor, previous_state, meas_f_ib_b, LC_KF_config,
                     est_L_b_old=None, latitude_in_degrees=False):
    """
    lc_kf_epoch with separate position and velocity sequences, an interval
    in any supported form and optionally a latitude in degrees
    """
    return lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, interval_to_seconds(tor), previous_state, meas_f_ib_b,
                       LC_KF_config, est_L_b_old=latitude_to_radians(est_L_b_old, latitude_in_degrees))


def lc_kf_epoch_pv(GNSS_pv_eb_e, tor, previous_state, meas_f_ib_b, LC_KF_config,
                   est_L_b_old=None, latitude_in_degrees=False):
    """
    lc_kf_epoch with a combined position-velocity solution
    """
    GNSS_r_eb_e, GNSS_v_eb_e = split_pv(GNSS_pv_eb_e)
    return lc_kf_epoch_from(GNSS_r_eb_e, GNSS_v_eb_e, tor, previous_state, meas_f_ib_b, LC_KF_config,
                            est_L_b_old=est_L_b_old, latitude_in_degrees=latitude_in_degrees)


def lc_kf_epoch_pv_into(GNSS_pv_eb_e, tor, previous_state, meas_f_ib_b, LC_KF_config, result,
                        est_L_b_old=None, latitude_in_degrees=False):
    GNSS_r_eb_e, GNSS_v_eb_e = split_pv(GNSS_pv_eb_e)
    return lc_kf_epoch_into(GNSS_r_eb_e, GNSS_v_eb_e, interval_to_seconds(tor), previous_state, meas_f_ib_b,
                            LC_KF_config, result, est_L_b_old=latitude_to_radians(est_L_b_old, latitude_in_degrees))
