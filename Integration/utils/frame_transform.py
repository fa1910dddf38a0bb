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

import math
import numpy as np
import quaternion


def skew_symmetric(a):
    """
    skew_symmetric - Calculates skew-symmetric matrix

    Inputs:
        a       3-element vector, either (3,) or (3x1)
    Outputs:
        A       3x3 matrix such that A * b = a x b
    """
    a = np.asarray(a, dtype=float).reshape(3)

    A = np.zeros((3, 3))
    A[0, 1] = -a[2]
    A[0, 2] = a[1]
    A[1, 0] = a[2]
    A[1, 2] = -a[0]
    A[2, 0] = -a[1]
    A[2, 1] = a[0]

    return A


def euler_to_ctm(eul):
    """
    euler_to_ctm - Converts a set of Euler angles to the corresponding
    coordinate transformation matrix

    Inputs:
      eul     Euler angles describing rotation from beta to alpha in the
              order roll, pitch, yaw (rad)

    Outputs:
      C       coordinate transformation matrix describing transformation from
              beta to alpha
    """
    roll, pitch, yaw = np.asarray(eul, dtype=float).reshape(3)

    sin_phi = math.sin(roll)
    cos_phi = math.cos(roll)
    sin_theta = math.sin(pitch)
    cos_theta = math.cos(pitch)
    sin_psi = math.sin(yaw)
    cos_psi = math.cos(yaw)

    # Calculate coordinate transformation matrix using (2.22)
    C = np.zeros((3, 3))
    C[0, 0] = cos_theta * cos_psi
    C[0, 1] = cos_theta * sin_psi
    C[0, 2] = -sin_theta
    C[1, 0] = -cos_phi * sin_psi + sin_phi * sin_theta * cos_psi
    C[1, 1] = cos_phi * cos_psi + sin_phi * sin_theta * sin_psi
    C[1, 2] = sin_phi * cos_theta
    C[2, 0] = sin_phi * sin_psi + cos_phi * sin_theta * cos_psi
    C[2, 1] = -sin_phi * cos_psi + cos_phi * sin_theta * sin_psi
    C[2, 2] = cos_phi * cos_theta

    return C


def ctm_to_euler(C):
    """
    ctm_to_euler - Converts a coordinate transformation matrix to the
    corresponding set of Euler angles

    Inputs:
      C       coordinate transformation matrix describing transformation from
              beta to alpha

    Outputs:
      eul     (3x1) Euler angles describing rotation from beta to alpha in the
              order roll, pitch, yaw (rad)
    """
    # Calculate Euler angles using (2.23)
    eul = np.zeros((3, 1))
    eul[0, 0] = math.atan2(C[1, 2], C[2, 2])
    eul[1, 0] = -math.asin(max(-1.0, min(1.0, C[0, 2])))
    eul[2, 0] = math.atan2(C[0, 1], C[0, 0])

    return eul


def orthonormalize_ctm(C):
    """
    orthonormalize_ctm - Returns the proper rotation matrix closest to a
    coordinate transformation matrix that has drifted from orthonormality,
    e.g. after repeated small-angle closed-loop corrections.

    The unit quaternion is found with the Bar-Itzhack method (the eigenvector
    of the largest eigenvalue of the symmetric 4x4 matrix built from C), so
    the rotation it returns is nearest to C in the Frobenius norm. scipy
    must be installed for numpy-quaternion to take this path.

    Inputs:
      C       3x3 coordinate transformation matrix

    Outputs:
      C_orth  3x3 orthonormal coordinate transformation matrix
    """
    C = np.asarray(C, dtype=float)
    if C.shape != (3, 3):
        raise ValueError("Coordinate transformation matrix must be 3x3, got {}".format(C.shape))

    q = quaternion.from_rotation_matrix(C, nonorthogonal=True)
    return quaternion.as_rotation_matrix(q)


def _ecef_to_ned_matrix(L_b, lambda_b):
    # ECEF to NED coordinate transformation matrix using (2.150)
    cos_lat = math.cos(L_b)
    sin_lat = math.sin(L_b)
    cos_long = math.cos(lambda_b)
    sin_long = math.sin(lambda_b)

    C_e_n = np.zeros((3, 3))
    C_e_n[0, 0] = -sin_lat * cos_long
    C_e_n[0, 1] = -sin_lat * sin_long
    C_e_n[0, 2] = cos_lat
    C_e_n[1, 0] = -sin_long
    C_e_n[1, 1] = cos_long
    C_e_n[2, 0] = -cos_lat * cos_long
    C_e_n[2, 1] = -cos_lat * sin_long
    C_e_n[2, 2] = -sin_lat

    return C_e_n


def _ecef_to_curvilinear(r_eb_e):
    """
    Converts Cartesian ECEF position to latitude, longitude and height using
    the Borkowski closed-form exact solution
    """
    # CONSTANTS
    R_0 = 6378137           # WGS84 Equatorial radius in meters
    e = 0.0818191908425     # WGS84 eccentricity

    x, y, z = np.asarray(r_eb_e, dtype=float).reshape(3)

    # From (2.113)
    lambda_b = math.atan2(y, x)

    beta = math.sqrt(x ** 2 + y ** 2)
    if beta == 0:
        # On the polar axis latitude is +/-90 deg and height is measured from the pole
        if z == 0:
            raise ValueError("Position at the centre of the Earth has no curvilinear equivalent")
        L_b = math.copysign(math.pi / 2, z)
        h_b = abs(z) - R_0 * math.sqrt(1 - e ** 2)
        return L_b, lambda_b, h_b

    # From (C.29) and (C.30)
    k1 = math.sqrt(1 - e ** 2) * abs(z)
    k2 = e ** 2 * R_0
    E = (k1 - k2) / beta
    F = (k1 + k2) / beta

    # From (C.31)
    P = (4 / 3) * (E * F + 1)

    # From (C.32)
    Q = 2 * (E ** 2 - F ** 2)

    # From (C.33)
    D = P ** 3 + Q ** 2

    # From (C.34)
    V = (math.sqrt(D) - Q) ** (1 / 3) - (math.sqrt(D) + Q) ** (1 / 3)

    # From (C.35)
    G = 0.5 * (math.sqrt(E ** 2 + V) + E)

    # From (C.36)
    T = math.sqrt(G ** 2 + (F - V * G) / (2 * G - E)) - G

    # From (C.37)
    L_b = np.sign(z) * math.atan((1 - T ** 2) / (2 * T * math.sqrt(1 - e ** 2)))

    # From (C.38)
    h_b = (beta - R_0 * T) * math.cos(L_b) + (z - np.sign(z) * R_0 * math.sqrt(1 - e ** 2)) * math.sin(L_b)

    return float(L_b), lambda_b, float(h_b)


def pv_ecef_to_ned(r_eb_e, v_eb_e):
    """
    pv_ecef_to_ned - Converts Cartesian to curvilinear position and resolves
    velocity from ECEF to NED axes

    Inputs:
      r_eb_e        Cartesian position of body frame w.r.t. ECEF frame, resolved
                    along ECEF-frame axes (m)
      v_eb_e        velocity of body frame w.r.t. ECEF frame, resolved along
                    ECEF-frame axes (m/s)

    Outputs:
      L_b           latitude (rad)
      lambda_b      longitude (rad)
      h_b           height (m)
      v_eb_n        (3x1) velocity of body frame w.r.t. ECEF frame, resolved along
                    north, east, and down (m/s)
    """
    L_b, lambda_b, h_b = _ecef_to_curvilinear(r_eb_e)

    # Transform velocity using (2.73)
    C_e_n = _ecef_to_ned_matrix(L_b, lambda_b)
    v_eb_n = np.matmul(C_e_n, np.asarray(v_eb_e, dtype=float).reshape((3, 1)))

    return L_b, lambda_b, h_b, v_eb_n


def ecef_to_ned(r_eb_e, v_eb_e, C_b_e):
    """
    ecef_to_ned - Converts Cartesian to curvilinear position, velocity
    resolving axes from ECEF to NED and attitude from ECEF- to NED-referenced

    Inputs:
      r_eb_e        Cartesian ECEF position (m)
      v_eb_e        ECEF velocity (m/s)
      C_b_e         body-to-ECEF-frame coordinate transformation matrix

    Outputs:
      L_b           latitude (rad)
      lambda_b      longitude (rad)
      h_b           height (m)
      v_eb_n        (3x1) NED velocity (m/s)
      C_b_n         body-to-NED coordinate transformation matrix
    """
    L_b, lambda_b, h_b, v_eb_n = pv_ecef_to_ned(r_eb_e, v_eb_e)

    # Transform attitude using (2.15)
    C_b_n = np.matmul(_ecef_to_ned_matrix(L_b, lambda_b), C_b_e)

    return L_b, lambda_b, h_b, v_eb_n, C_b_n


def pv_ned_to_ecef(L_b, lambda_b, h_b, v_eb_n):
    """
    pv_ned_to_ecef - Converts curvilinear to Cartesian position and velocity
    resolving axes from NED to ECEF

    Inputs:
      L_b           latitude (rad)
      lambda_b      longitude (rad)
      h_b           height (m)
      v_eb_n        velocity of body frame w.r.t. ECEF frame, resolved along
                    north, east, and down (m/s)

    Outputs:
      r_eb_e        (3x1) Cartesian ECEF position (m)
      v_eb_e        (3x1) ECEF velocity (m/s)
    """
    # CONSTANTS
    R_0 = 6378137           # WGS84 Equatorial radius in meters
    e = 0.0818191908425     # WGS84 eccentricity

    # Calculate transverse radius of curvature using (2.106)
    R_E = R_0 / math.sqrt(1 - (e * math.sin(L_b)) ** 2)

    # Convert position using (2.112)
    cos_lat = math.cos(L_b)
    sin_lat = math.sin(L_b)
    r_eb_e = np.zeros((3, 1))
    r_eb_e[0, 0] = (R_E + h_b) * cos_lat * math.cos(lambda_b)
    r_eb_e[1, 0] = (R_E + h_b) * cos_lat * math.sin(lambda_b)
    r_eb_e[2, 0] = ((1 - e ** 2) * R_E + h_b) * sin_lat

    # Transform velocity using (2.73)
    C_e_n = _ecef_to_ned_matrix(L_b, lambda_b)
    v_eb_e = np.matmul(np.transpose(C_e_n), np.asarray(v_eb_n, dtype=float).reshape((3, 1)))

    return r_eb_e, v_eb_e


def ned_to_ecef(L_b, lambda_b, h_b, v_eb_n, C_b_n):
    """
    ned_to_ecef - Converts curvilinear to Cartesian position, velocity
    resolving axes from NED to ECEF and attitude from NED- to ECEF-referenced

    Outputs:
      r_eb_e        (3x1) Cartesian ECEF position (m)
      v_eb_e        (3x1) ECEF velocity (m/s)
      C_b_e         body-to-ECEF-frame coordinate transformation matrix
    """
    r_eb_e, v_eb_e = pv_ned_to_ecef(L_b, lambda_b, h_b, v_eb_n)

    # Transform attitude using (2.15)
    C_b_e = np.matmul(np.transpose(_ecef_to_ned_matrix(L_b, lambda_b)), C_b_n)

    return r_eb_e, v_eb_e, C_b_e
