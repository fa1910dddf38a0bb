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

import logging
import math
import numpy as np
from Integration.engine.errors import NumericalInstabilityError
from Integration.engine.lc_kf_state import LCKFState, NUM_STATES, as_column_vector, as_matrix
from Integration.utils.curvilinear_conversion import geocentric_radius
from Integration.utils.frame_transform import skew_symmetric, pv_ecef_to_ned
from Integration.utils.gravitation_gravity_model import gravity_ecef

logger = logging.getLogger(__name__)

# CONSTANTS
omega_ie = 7.292115E-5  # Earth rotation rate in rad / s
NUM_MEAS = 6            # GNSS position and velocity per axis


def _check_interval(tor_s):
    try:
        tor_s = float(tor_s)
    except (TypeError, ValueError) as err:
        raise ValueError("Propagation interval must be a number of seconds, got {!r}".format(tor_s)) from err
    if not math.isfinite(tor_s) or tor_s <= 0:
        raise ValueError("Propagation interval must be positive and finite, got {}".format(tor_s))
    return tor_s


def lc_transition_matrix(tor_s, est_C_b_e_old, meas_f_ib_b, est_r_eb_e_old, est_L_b_old):
    """
    lc_transition_matrix - Builds the first-order transition matrix of the
    loosely coupled INS/GNSS error-state Kalman filter, (14.50)

    Inputs:
      tor_s                 propagation interval (s)
      est_C_b_e_old         prior estimated body to ECEF coordinate
                            transformation matrix
      meas_f_ib_b           measured specific force (m/s^2)
      est_r_eb_e_old        prior estimated ECEF user position (m)
      est_L_b_old           previous latitude solution (rad)

    Outputs:
      Phi_matrix            15x15 state transition matrix
    """
    tor_s = _check_interval(tor_s)
    est_C_b_e_old = as_matrix(est_C_b_e_old, (3, 3), "est_C_b_e_old")
    meas_f_ib_b = as_column_vector(meas_f_ib_b, "meas_f_ib_b")
    est_r_eb_e_old = as_column_vector(est_r_eb_e_old, "est_r_eb_e_old")

    mag_r = np.linalg.norm(est_r_eb_e_old)
    if mag_r == 0:
        raise ValueError("Previous position is at the centre of the Earth")

    # Skew symmetric matrix of Earth rate
    Omega_ie = skew_symmetric(np.array([[0], [0], [omega_ie]]))

    # 1. Determine transition matrix using (14.50) (first-order approx)
    Phi_matrix = np.identity(NUM_STATES)
    Phi_matrix[0:3, 0:3] = Phi_matrix[0:3, 0:3] - Omega_ie * tor_s
    Phi_matrix[0:3, 12:15] = est_C_b_e_old * tor_s
    Phi_matrix[3:6, 0:3] = -tor_s * skew_symmetric(np.matmul(est_C_b_e_old, meas_f_ib_b))
    Phi_matrix[3:6, 3:6] = Phi_matrix[3:6, 3:6] - 2 * Omega_ie * tor_s
    Phi_matrix[3:6, 6:9] = -tor_s * np.matmul((2 / geocentric_radius(est_L_b_old)) * gravity_ecef(est_r_eb_e_old),
                                              np.transpose(est_r_eb_e_old) / mag_r)
    Phi_matrix[3:6, 9:12] = est_C_b_e_old * tor_s
    Phi_matrix[6:9, 3:6] = np.identity(3) * tor_s

    return Phi_matrix


def lc_system_noise_matrix(tor_s, LC_KF_config):
    """
    lc_system_noise_matrix - Determines the approximate system noise
    covariance matrix using (14.82)

    Inputs:
      tor_s                 propagation interval (s)
      LC_KF_config
        .gyro_noise_PSD     Gyro noise PSD (rad^2/s)
        .accel_noise_PSD    Accelerometer noise PSD (m^2 s^-3)
        .accel_bias_PSD     Accelerometer bias random walk PSD (m^2 s^-5)
        .gyro_bias_PSD      Gyro bias random walk PSD (rad^2 s^-3)

    Outputs:
      Q_prime_matrix        15x15 diagonal system noise covariance matrix
    """
    tor_s = _check_interval(tor_s)

    Q_prime_matrix = np.zeros((NUM_STATES, NUM_STATES))
    Q_prime_matrix[0:3, 0:3] = np.identity(3) * LC_KF_config.gyro_noise_PSD * tor_s
    Q_prime_matrix[3:6, 3:6] = np.identity(3) * LC_KF_config.accel_noise_PSD * tor_s
    Q_prime_matrix[9:12, 9:12] = np.identity(3) * LC_KF_config.accel_bias_PSD * tor_s
    Q_prime_matrix[12:15, 12:15] = np.identity(3) * LC_KF_config.gyro_bias_PSD * tor_s

    return Q_prime_matrix


def propagate_lc_covariance(P_matrix_old, Phi_matrix, Q_prime_matrix):
    """
    Propagates the state estimation error covariance matrix using (3.46)
    """
    return np.matmul(np.matmul(Phi_matrix, (P_matrix_old + 0.5 * Q_prime_matrix)),
                     np.transpose(Phi_matrix)) + 0.5 * Q_prime_matrix


def lc_measurement_matrices(LC_KF_config):
    """
    lc_measurement_matrices - Sets up the measurement matrix (14.115) and the
    measurement noise covariance matrix, assuming all measurements are
    independent and have equal variance for a given measurement type

    Inputs:
      LC_KF_config
        .pos_meas_SD        Position measurement noise SD per axis (m)
        .vel_meas_SD        Velocity measurement noise SD per axis (m/s)

    Outputs:
      H_matrix              6x15 measurement matrix
      R_matrix              6x6 measurement noise covariance matrix
    """
    H_matrix = np.zeros((NUM_MEAS, NUM_STATES))
    H_matrix[0:3, 6:9] = -np.identity(3)
    H_matrix[3:6, 3:6] = -np.identity(3)

    R_matrix = np.zeros((NUM_MEAS, NUM_MEAS))
    R_matrix[0:3, 0:3] = np.identity(3) * LC_KF_config.pos_meas_SD ** 2
    R_matrix[3:6, 3:6] = np.identity(3) * LC_KF_config.vel_meas_SD ** 2

    return H_matrix, R_matrix


def lc_kalman_gain(P_matrix_propagated, H_matrix, R_matrix):
    """
    lc_kalman_gain - Calculates the Kalman gain using (3.21)

    Inputs:
      P_matrix_propagated   propagated error covariance matrix
      H_matrix              measurement matrix
      R_matrix              measurement noise covariance matrix

    Outputs:
      K_matrix              Kalman gain matrix

    Raises NumericalInstabilityError when the innovation covariance is
    non-finite, rank deficient or cannot be inverted.
    """
    PH_T = np.matmul(P_matrix_propagated, np.transpose(H_matrix))
    HPH_T = np.matmul(np.matmul(H_matrix, P_matrix_propagated), np.transpose(H_matrix))
    S_matrix = HPH_T + R_matrix

    if not np.all(np.isfinite(S_matrix)):
        logger.warning("Innovation covariance has non-finite elements")
        raise NumericalInstabilityError("Innovation covariance has non-finite elements")

    rank = np.linalg.matrix_rank(S_matrix)
    if rank < S_matrix.shape[0]:
        logger.warning("Innovation covariance is singular (rank %d of %d)", rank, S_matrix.shape[0])
        raise NumericalInstabilityError(
            "Innovation covariance is singular (rank {} of {})".format(rank, S_matrix.shape[0]))

    try:
        S_inverse = np.linalg.inv(S_matrix)
    except np.linalg.LinAlgError as err:
        logger.warning("Innovation covariance inversion failed: %s", err)
        raise NumericalInstabilityError("Innovation covariance inversion failed") from err

    return np.matmul(PH_T, S_inverse)


def lc_measurement_update(GNSS_r_eb_e, GNSS_v_eb_e, est_r_eb_e_old, est_v_eb_e_old, P_matrix_propagated,
                          LC_KF_config):
    """
    lc_measurement_update - Measurement update phase of the loosely coupled
    INS/GNSS Kalman filter

    Inputs:
      GNSS_r_eb_e           GNSS estimated ECEF user position (m)
      GNSS_v_eb_e           GNSS estimated ECEF user velocity (m/s)
      est_r_eb_e_old        prior estimated ECEF user position (m)
      est_v_eb_e_old        prior estimated ECEF user velocity (m/s)
      P_matrix_propagated   propagated error covariance matrix
      LC_KF_config          see lc_measurement_matrices

    Outputs:
      x_est_new             (15x1) updated error state estimates
      P_matrix_new          updated error covariance matrix
    """
    H_matrix, R_matrix = lc_measurement_matrices(LC_KF_config)

    # Calculate Kalman gain using (3.21)
    K_matrix = lc_kalman_gain(P_matrix_propagated, H_matrix, R_matrix)

    # Formulate measurement innovations using (14.102), noting that zero
    # lever arm is assumed here
    delta_z = np.zeros((NUM_MEAS, 1))
    delta_z[0:3, [0]] = as_column_vector(GNSS_r_eb_e, "GNSS_r_eb_e") - est_r_eb_e_old
    delta_z[3:6, [0]] = as_column_vector(GNSS_v_eb_e, "GNSS_v_eb_e") - est_v_eb_e_old

    # Update state estimates using (3.24), the propagated error state being
    # zero after closed-loop correction
    x_est_new = np.matmul(K_matrix, delta_z)

    # Update state estimation error covariance matrix using (3.25)
    P_matrix_new = np.matmul(np.identity(NUM_STATES) - np.matmul(K_matrix, H_matrix), P_matrix_propagated)

    logger.debug("Innovation norm: position %.3f m, velocity %.4f m/s",
                 np.linalg.norm(delta_z[0:3, 0]), np.linalg.norm(delta_z[3:6, 0]))

    return x_est_new, P_matrix_new


def lc_closed_loop_correction(x_est_new, previous_state):
    """
    lc_closed_loop_correction - Feeds the error state estimates back into
    the inertial navigation solution using (14.7-9)

    Inputs:
      x_est_new             (15x1) error state estimates
      previous_state        LCKFState holding the prior nominal state

    Outputs:
      corrected             new LCKFState carrying the corrected nominal state
                            and the covariance of previous_state
    """
    x_est_new = np.asarray(x_est_new, dtype=float).reshape((NUM_STATES, 1))

    # Correct attitude, velocity, and position using (14.7-9)
    est_C_b_e_new = np.matmul((np.identity(3) - skew_symmetric(x_est_new[0:3, [0]])), previous_state.C_b_e)
    est_v_eb_e_new = previous_state.v_eb_e - x_est_new[3:6, [0]]
    est_r_eb_e_new = previous_state.r_eb_e - x_est_new[6:9, [0]]

    # Update IMU bias estimates
    est_b_a_new = previous_state.b_a + x_est_new[9:12, [0]]
    est_b_g_new = previous_state.b_g + x_est_new[12:15, [0]]

    return LCKFState(est_C_b_e_new, est_v_eb_e_new, est_r_eb_e_new, est_b_a_new, est_b_g_new,
                     previous_state.P_matrix)


def _checked_state(state):
    # Validated copy of a caller supplied state
    return LCKFState(state.C_b_e, state.v_eb_e, state.r_eb_e, state.b_a, state.b_g, state.P_matrix)


def _propagate(tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old):
    tor_s = _check_interval(tor_s)

    if est_L_b_old is None:
        est_L_b_old, _, _, _ = pv_ecef_to_ned(previous_state.r_eb_e, previous_state.v_eb_e)

    # SYSTEM PROPAGATION PHASE
    Phi_matrix = lc_transition_matrix(tor_s, previous_state.C_b_e, meas_f_ib_b, previous_state.r_eb_e, est_L_b_old)
    Q_prime_matrix = lc_system_noise_matrix(tor_s, LC_KF_config)
    P_matrix_propagated = propagate_lc_covariance(previous_state.P_matrix, Phi_matrix, Q_prime_matrix)

    logger.debug("LC KF propagation over %.3f s at latitude %.6f rad", tor_s, est_L_b_old)

    return P_matrix_propagated


def _lc_kf_estimate(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old):
    previous_state = _checked_state(previous_state)

    P_matrix_propagated = _propagate(tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old)

    # MEASUREMENTS UPDATE PHASE
    x_est_new, P_matrix_new = lc_measurement_update(GNSS_r_eb_e, GNSS_v_eb_e, previous_state.r_eb_e,
                                                    previous_state.v_eb_e, P_matrix_propagated, LC_KF_config)

    # CLOSED-LOOP CORRECTION
    new_state = lc_closed_loop_correction(x_est_new, previous_state)
    new_state.P_matrix = P_matrix_new

    return new_state


def lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old=None):
    """
    lc_kf_epoch - Implements one cycle of the loosely coupled INS/GNSS
    Kalman filter plus closed-loop correction of all inertial states

    Inputs:
      GNSS_r_eb_e           GNSS estimated ECEF user position (m)
      GNSS_v_eb_e           GNSS estimated ECEF user velocity (m/s)
      tor_s                 propagation interval (s)
      previous_state        LCKFState
        .C_b_e              prior estimated body to ECEF coordinate
                            transformation matrix
        .v_eb_e             prior estimated ECEF user velocity (m/s)
        .r_eb_e             prior estimated ECEF user position (m)
        .b_a                prior estimated accelerometer biases (m/s^2)
        .b_g                prior estimated gyro biases (rad/s)
        .P_matrix           previous Kalman filter error covariance matrix
      meas_f_ib_b           measured specific force (m/s^2)
      LC_KF_config
        .gyro_noise_PSD     Gyro noise PSD (rad^2/s)
        .accel_noise_PSD    Accelerometer noise PSD (m^2 s^-3)
        .accel_bias_PSD     Accelerometer bias random walk PSD (m^2 s^-5)
        .gyro_bias_PSD      Gyro bias random walk PSD (rad^2 s^-3)
        .pos_meas_SD        Position measurement noise SD per axis (m)
        .vel_meas_SD        Velocity measurement noise SD per axis (m/s)
      est_L_b_old           previous latitude solution (rad); derived from
                            the previous position when omitted

    Outputs:
      new_state             LCKFState with the corrected inertial states and
                            the updated error covariance matrix

    previous_state is not modified.
    """
    return _lc_kf_estimate(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old)


def lc_kf_epoch_into(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, previous_state, meas_f_ib_b, LC_KF_config, result,
                     est_L_b_old=None):
    """
    As lc_kf_epoch, writing the new state into result. result is only written
    once every stage has succeeded and may be previous_state itself.
    """
    new_state = _lc_kf_estimate(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, previous_state, meas_f_ib_b, LC_KF_config,
                                est_L_b_old)
    result.copy_from(new_state)
    return result


def lc_kf_propagate(tor_s, previous_state, meas_f_ib_b, LC_KF_config, est_L_b_old=None):
    """
    lc_kf_propagate - System propagation phase only, for epochs without a
    GNSS solution. The nominal state is left as it is and the covariance is
    propagated.

    Outputs:
      new_state             LCKFState carrying the propagated covariance
    """
    new_state = _checked_state(previous_state)
    new_state.P_matrix = _propagate(tor_s, new_state, meas_f_ib_b, LC_KF_config, est_L_b_old)
    return new_state
