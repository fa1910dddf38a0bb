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
import numpy as np
from Integration.engine.kalman_filter import lc_kf_epoch
from Integration.engine.nav_equations import nav_equations_ecef

logger = logging.getLogger(__name__)

# Columns of the IMU and GNSS profiles
PROFILE_COLUMNS = 7


def _check_profile(profile, name):
    profile = np.asarray(profile, dtype=float)
    if profile.ndim != 2 or profile.shape[1] != PROFILE_COLUMNS:
        raise ValueError("{} must have {} columns, got shape {}".format(name, PROFILE_COLUMNS, profile.shape))
    if profile.shape[0] == 0:
        raise ValueError("{} is empty".format(name))
    return profile


def loosely_coupled_ins_gnss(imu_profile, gnss_profile, initial_state, LC_KF_config):
    """
    loosely_coupled_ins_gnss - Runs inertial navigation using the ECEF
    navigation equations, corrected by loosely coupled INS/GNSS integration
    whenever a GNSS position/velocity solution becomes due

    Inputs:
      imu_profile      IMU measurement array
      gnss_profile     GNSS position/velocity solution array
      initial_state    LCKFState at the time of the first IMU sample
      LC_KF_config
        .gyro_noise_PSD         Gyro noise PSD (rad^2/s)
        .accel_noise_PSD        Accelerometer noise PSD (m^2 s^-3)
        .accel_bias_PSD         Accelerometer bias random walk PSD (m^2 s^-5)
        .gyro_bias_PSD          Gyro bias random walk PSD (rad^2 s^-3)
        .pos_meas_SD            Position measurement noise SD per axis (m)
        .vel_meas_SD            Velocity measurement noise SD per axis (m/s)

    Outputs:
      out_profile        Navigation solution array
      out_IMU_bias_est   Kalman filter IMU bias estimate array
      out_KF_SD          Output Kalman filter state uncertainties
      state              LCKFState after the last IMU sample

    Format of IMU profile:
     Column 1: time (sec)
     Columns 2-4: specific force along body X, Y, Z (m/s^2)
     Columns 5-7: angular rate about body X, Y, Z (rad/s)

    Format of GNSS profile:
     Column 1: time (sec)
     Columns 2-4: ECEF position X, Y, Z (m)
     Columns 5-7: ECEF velocity X, Y, Z (m/s)

    Format of navigation solution array:
     Column 1: time (sec)
     Columns 2-4: ECEF position X, Y, Z (m)
     Columns 5-7: ECEF velocity X, Y, Z (m/s)

    Format of output IMU biases array:
     Column 1: time (sec)
     Columns 2-4: estimated X, Y, Z accelerometer bias (m/s^2)
     Columns 5-7: estimated X, Y, Z gyro bias (rad/s)

    Format of KF state uncertainties array:
     Column 1: time (sec)
     Columns 2-4: X, Y, Z attitude error uncertainty (rad)
     Columns 5-7: X, Y, Z velocity error uncertainty (m/s)
     Columns 8-10: X, Y, Z position error uncertainty (m)
     Columns 11-13: X, Y, Z accelerometer bias uncertainty (m/s^2)
     Columns 14-16: X, Y, Z gyro bias uncertainty (rad/s)
    """
    imu_profile = _check_profile(imu_profile, "IMU profile")
    gnss_profile = _check_profile(gnss_profile, "GNSS profile")
    no_epochs = imu_profile.shape[0]
    no_GNSS_epochs = gnss_profile.shape[0]

    state = initial_state.copy()
    old_time = imu_profile[0, 0]

    logger.info("Loosely coupled INS/GNSS: %d IMU epochs, %d GNSS epochs", no_epochs, no_GNSS_epochs)

    # Initialize output records
    out_profile = np.zeros((no_epochs, 7))
    out_IMU_bias_est = np.zeros((no_GNSS_epochs + 1, 7))
    out_KF_SD = np.zeros((no_GNSS_epochs + 1, 16))

    out_profile[0, 0] = old_time
    out_profile[[0], 1:4] = np.transpose(state.r_eb_e)
    out_profile[[0], 4:7] = np.transpose(state.v_eb_e)
    out_IMU_bias_est[0, 0] = old_time
    out_IMU_bias_est[[0], 1:7] = np.transpose(state.IMU_bias)
    out_KF_SD[0, 0] = old_time
    out_KF_SD[0, 1:] = state.state_sd()

    # Fixes at or before the first IMU sample are already in the initial state
    GNSS_index = int(np.searchsorted(gnss_profile[:, 0], old_time, side='right'))
    time_last_GNSS = old_time
    no_updates = 0

    # Main loop
    for epoch in range(1, no_epochs):
        time = imu_profile[epoch, 0]
        tor_i = time - old_time

        # Correct IMU errors
        meas_f_ib_b = np.transpose(imu_profile[[epoch], 1:4]) - state.b_a
        meas_omega_ib_b = np.transpose(imu_profile[[epoch], 4:7]) - state.b_g

        # Update estimated navigation solution
        state.r_eb_e, state.v_eb_e, state.C_b_e = nav_equations_ecef(tor_i, state.r_eb_e, state.v_eb_e,
                                                                     state.C_b_e, meas_f_ib_b, meas_omega_ib_b)

        # Determine whether a GNSS solution is due, keeping the latest one
        due_index = None
        while GNSS_index < no_GNSS_epochs and gnss_profile[GNSS_index, 0] <= time:
            due_index = GNSS_index
            GNSS_index = GNSS_index + 1

        if due_index is not None:
            tor_s = time - time_last_GNSS  # KF time interval
            time_last_GNSS = time

            GNSS_r_eb_e = np.transpose(gnss_profile[[due_index], 1:4])
            GNSS_v_eb_e = np.transpose(gnss_profile[[due_index], 4:7])

            # Run integration Kalman filter
            state = lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, tor_s, state, meas_f_ib_b, LC_KF_config)
            no_updates = no_updates + 1

            logger.debug("GNSS update %d at %.3f s, position SD %.3f m", no_updates, time,
                         float(np.max(state.state_sd()[6:9])))

            # Generate IMU bias and KF uncertainty records
            out_IMU_bias_est[no_updates, 0] = time
            out_IMU_bias_est[[no_updates], 1:7] = np.transpose(state.IMU_bias)
            out_KF_SD[no_updates, 0] = time
            out_KF_SD[no_updates, 1:] = state.state_sd()

        # Generate output profile record
        out_profile[epoch, 0] = time
        out_profile[[epoch], 1:4] = np.transpose(state.r_eb_e)
        out_profile[[epoch], 4:7] = np.transpose(state.v_eb_e)

        # Reset old values
        old_time = time

    logger.info("Loosely coupled INS/GNSS complete: %d GNSS updates", no_updates)

    return out_profile, out_IMU_bias_est[0:no_updates + 1, :], out_KF_SD[0:no_updates + 1, :], state
