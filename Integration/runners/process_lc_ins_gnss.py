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

import argparse
import logging
import numpy as np
from Integration.engine.initialize import initialize_lc_state
from Integration.engine.integrated_navigation import loosely_coupled_ins_gnss
from Integration.engine.lc_kf_config import LCKFConfig, LCKFInitializerConfig, DEG_TO_RAD, RAD_TO_DEG
from Integration.runners.read_profile import read_imu_profile, read_gnss_profile
from Integration.utils.frame_transform import pv_ecef_to_ned, ctm_to_euler

logger = logging.getLogger(__name__)


def run_lc_ins_gnss(args):
    imu_profile = read_imu_profile(args.imu_file)
    gnss_profile = read_gnss_profile(args.gnss_file)

    # Initialize position and velocity from the first GNSS solution and
    # attitude from the supplied roll, pitch and yaw
    L_b, lambda_b, h_b, v_eb_n = pv_ecef_to_ned(np.transpose(gnss_profile[[0], 1:4]),
                                               np.transpose(gnss_profile[[0], 4:7]))
    eul_nb = np.array([[args.roll], [args.pitch], [args.yaw]]) * DEG_TO_RAD
    initial_state = initialize_lc_state(L_b, lambda_b, h_b, v_eb_n, eul_nb, LCKFInitializerConfig())

    LC_KF_config = LCKFConfig(pos_meas_SD=args.pos_sd, vel_meas_SD=args.vel_sd)

    out_profile, out_IMU_bias_est, out_KF_SD, state = loosely_coupled_ins_gnss(imu_profile, gnss_profile,
                                                                                 initial_state, LC_KF_config)

    L_b, lambda_b, h_b, v_eb_n, C_b_n = state.get_ned()
    eul_nb = ctm_to_euler(np.transpose(C_b_n))
    logger.info("Final time %.3f s", out_profile[-1, 0])
    logger.info("Final position: latitude %.8f deg, longitude %.8f deg, height %.3f m",
                L_b * RAD_TO_DEG, lambda_b * RAD_TO_DEG, h_b)
    logger.info("Final NED velocity (m/s): %s", np.array2string(v_eb_n.ravel(), precision=4))
    logger.info("Final roll, pitch, yaw (deg): %s", np.array2string(eul_nb.ravel() * RAD_TO_DEG, precision=4))
    logger.info("Accelerometer bias (m/s^2): %s", np.array2string(state.b_a.ravel(), precision=6))
    logger.info("Gyro bias (rad/s): %s", np.array2string(state.b_g.ravel(), precision=8))
    logger.info("Position SD (m): %s", np.array2string(out_KF_SD[-1, 7:10], precision=3))

    return state


if __name__ == '__main__':
    """
    Loosely coupled INS/GNSS processing of recorded IMU and GNSS
    position/velocity profiles
    """
    parser = argparse.ArgumentParser(description='Process loosely coupled INS/GNSS integration')
    parser.add_argument("imu_file", help="IMU profile file name")
    parser.add_argument("gnss_file", help="GNSS position/velocity profile file name")
    parser.add_argument("--roll", type=float, default=0.0, help="initial roll angle (deg)")
    parser.add_argument("--pitch", type=float, default=0.0, help="initial pitch angle (deg)")
    parser.add_argument("--yaw", type=float, default=0.0, help="initial yaw angle (deg)")
    parser.add_argument("--pos-sd", type=float, default=2.5, help="GNSS position noise SD per axis (m)")
    parser.add_argument("--vel-sd", type=float, default=0.1, help="GNSS velocity noise SD per axis (m/s)")
    parser.add_argument("-v", "--verbose", help="log every GNSS update", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    run_lc_ins_gnss(args)
