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

import numpy as np
from Integration.engine.lc_kf_state import LCKFState, NUM_STATES
from Integration.utils.frame_transform import euler_to_ctm, ned_to_ecef


def initialize_lc_P_matrix(LC_KF_init_config):
    """
    initialize_lc_P_matrix - Initializes the loosely coupled INS/GNSS KF
    error covariance matrix

    Inputs:
      LC_KF_init_config
        .init_att_unc           Initial attitude uncertainty per axis (rad)
        .init_vel_unc           Initial velocity uncertainty per axis (m/s)
        .init_pos_unc           Initial position uncertainty per axis (m)
        .init_b_a_unc           Initial accel. bias uncertainty (m/s^2)
        .init_b_g_unc           Initial gyro. bias uncertainty (rad/s)

    Outputs:
      P_matrix              state estimation error covariance matrix
    """
    P_matrix = np.zeros((NUM_STATES, NUM_STATES))
    P_matrix[0:3, 0:3] = np.identity(3) * LC_KF_init_config.init_att_unc ** 2
    P_matrix[3:6, 3:6] = np.identity(3) * LC_KF_init_config.init_vel_unc ** 2
    P_matrix[6:9, 6:9] = np.identity(3) * LC_KF_init_config.init_pos_unc ** 2
    P_matrix[9:12, 9:12] = np.identity(3) * LC_KF_init_config.init_b_a_unc ** 2
    P_matrix[12:15, 12:15] = np.identity(3) * LC_KF_init_config.init_b_g_unc ** 2

    return P_matrix


def initialize_lc_state(L_b, lambda_b, h_b, v_eb_n, eul_nb, LC_KF_init_config):
    """
    initialize_lc_state - Initializes the loosely coupled INS/GNSS navigation
    state from a curvilinear position, NED velocity and NED attitude

    Inputs:
      L_b           latitude (rad)
      lambda_b      longitude (rad)
      h_b           height (m)
      v_eb_n        velocity of body frame w.r.t. ECEF frame, resolved along
                    north, east, and down (m/s)
      eul_nb        roll, pitch, yaw of body frame w.r.t. NED (rad)
      LC_KF_init_config     see initialize_lc_P_matrix

    Outputs:
      state         LCKFState with zero IMU bias estimates
    """
    # Body-to-NED attitude from the Euler angles (2.22)
    C_b_n = np.transpose(euler_to_ctm(eul_nb))

    r_eb_e, v_eb_e, C_b_e = ned_to_ecef(L_b, lambda_b, h_b, v_eb_n, C_b_n)

    return LCKFState(C_b_e=C_b_e, v_eb_e=v_eb_e, r_eb_e=r_eb_e,
                     P_matrix=initialize_lc_P_matrix(LC_KF_init_config))
