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
import math
from Integration.utils.frame_transform import skew_symmetric
from Integration.utils.gravitation_gravity_model import gravity_ecef


def nav_equations_ecef(tor_i, old_r_eb_e, old_v_eb_e, old_C_b_e, f_ib_b, omega_ib_b):
    """
    nav_equations_ecef - Runs precision ECEF-frame inertial navigation
    equations

    Inputs:
      tor_i         time interval between epochs (s)
      old_r_eb_e    (3x1) previous Cartesian position of body frame w.r.t. ECEF
                    frame, resolved along ECEF-frame axes (m)
      old_v_eb_e    (3x1) previous velocity of body frame w.r.t. ECEF frame,
                    resolved along ECEF-frame axes (m/s)
      old_C_b_e     previous body-to-ECEF-frame coordinate transformation matrix
      f_ib_b        (3x1) specific force of body frame w.r.t. ECEF frame, resolved
                    along body-frame axes, averaged over time interval (m/s^2)
      omega_ib_b    (3x1) angular rate of body frame w.r.t. ECEF frame, resolved
                    about body-frame axes, averaged over time interval (rad/s)
    Outputs:
      r_eb_e        (3x1) Cartesian position of body frame w.r.t. ECEF frame,
                    resolved along ECEF-frame axes (m)
      v_eb_e        (3x1) velocity of body frame w.r.t. ECEF frame, resolved
                    along ECEF-frame axes (m/s)
      C_b_e         body-to-ECEF-frame coordinate transformation matrix
    """
    # CONSTANT
    omega_ie = 7.292115e-5      # Earth rotation rate(rad / s)

    Omega_ie = skew_symmetric(np.array([[0], [0], [omega_ie]]))

    # ATTITUDE UPDATE
    # From (2.145) determine the Earth rotation over the update interval
    alpha_ie = omega_ie * tor_i
    C_Earth = np.zeros((3, 3))
    C_Earth[0, 0] = math.cos(alpha_ie)
    C_Earth[0, 1] = math.sin(alpha_ie)
    C_Earth[1, 0] = -math.sin(alpha_ie)
    C_Earth[1, 1] = math.cos(alpha_ie)
    C_Earth[2, 2] = 1

    # Calculate attitude increment, magnitude, and skew-symmetric matrix
    alpha_ib_b = omega_ib_b * tor_i
    mag_alpha = np.linalg.norm(alpha_ib_b)
    Alpha_ib_b = skew_symmetric(alpha_ib_b)

    # Obtain coordinate transformation matrix from the new attitude to the old
    # using Rodrigues' formula, (5.73)
    if mag_alpha > 1e-8:
        C_new_old = np.identity(3) + (math.sin(mag_alpha) / mag_alpha) * Alpha_ib_b + \
                    ((1 - math.cos(mag_alpha)) / mag_alpha ** 2) * np.matmul(Alpha_ib_b, Alpha_ib_b)
    else:
        C_new_old = np.identity(3) + Alpha_ib_b

    # Update attitude using (5.75)
    C_b_e = np.matmul(np.matmul(C_Earth, old_C_b_e), C_new_old)

    # SPECIFIC FORCE FRAME TRANSFORMATION
    # Calculate the average body-to-ECEF-frame coordinate transformation
    # matrix over the update interval using (5.84) and (5.85)
    if mag_alpha > 1e-8:
        first_order = ((1 - math.cos(mag_alpha)) / mag_alpha ** 2) * Alpha_ib_b
        second_order = ((1 - (math.sin(mag_alpha) / mag_alpha)) / mag_alpha ** 2) * np.matmul(Alpha_ib_b, Alpha_ib_b)
        ave_C_b_e = np.matmul(old_C_b_e, np.identity(3) + first_order + second_order) - \
            0.5 * tor_i * np.matmul(Omega_ie, old_C_b_e)
    else:
        ave_C_b_e = old_C_b_e - 0.5 * tor_i * np.matmul(Omega_ie, old_C_b_e)

    # Transform specific force to ECEF-frame resolving axes using (5.85)
    f_ib_e = np.matmul(ave_C_b_e, f_ib_b)

    # UPDATE VELOCITY
    # From (5.36)
    v_eb_e = old_v_eb_e + tor_i * (f_ib_e + gravity_ecef(old_r_eb_e) - 2 * np.matmul(Omega_ie, old_v_eb_e))

    # UPDATE CARTESIAN POSITION
    # From (5.38)
    r_eb_e = old_r_eb_e + (v_eb_e + old_v_eb_e) * 0.5 * tor_i

    return r_eb_e, v_eb_e, C_b_e
