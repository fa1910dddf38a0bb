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

# CONSTANTS
DEG_TO_RAD = 0.01745329252
RAD_TO_DEG = 1 / DEG_TO_RAD
MICRO_G_TO_METERS_PER_SECOND_SQUARED = 9.80665 * 1e-6


class LCKFConfig:
    """
    Loosely coupled INS/GNSS Kalman filter noise configuration. Defaults are
    those of a tactical-grade IMU aided by a GNSS position/velocity solution.

      .gyro_noise_PSD     Gyro noise PSD (rad^2/s)
      .accel_noise_PSD    Accelerometer noise PSD (m^2 s^-3)
      .accel_bias_PSD     Accelerometer bias random walk PSD (m^2 s^-5)
      .gyro_bias_PSD      Gyro bias random walk PSD (rad^2 s^-3)
      .pos_meas_SD        Position measurement noise SD per axis (m)
      .vel_meas_SD        Velocity measurement noise SD per axis (m/s)
    """
    _FIELDS = ('gyro_noise_PSD', 'accel_noise_PSD', 'accel_bias_PSD', 'gyro_bias_PSD', 'pos_meas_SD', 'vel_meas_SD')

    def __init__(self,
                 gyro_noise_PSD=(0.02 * DEG_TO_RAD / 60) ** 2,                          # Gyro noise PSD (deg^2 per hour, converted to rad^2/s)
                 accel_noise_PSD=(200 * MICRO_G_TO_METERS_PER_SECOND_SQUARED) ** 2,     # Accelerometer noise PSD (micro-g^2 per Hz, converted to m^2 s^-3)
                 accel_bias_PSD=1.0E-7,                                                 # Accelerometer bias random walk PSD (m^2 s^-5)
                 gyro_bias_PSD=2.0E-12,                                                 # Gyro bias random walk PSD (rad^2 s^-3)
                 pos_meas_SD=2.5,                                                       # Position measurement noise SD per axis (m)
                 vel_meas_SD=0.1):                                                      # Velocity measurement noise SD per axis (m/s)
        self.gyro_noise_PSD = gyro_noise_PSD
        self.accel_noise_PSD = accel_noise_PSD
        self.accel_bias_PSD = accel_bias_PSD
        self.gyro_bias_PSD = gyro_bias_PSD
        self.pos_meas_SD = pos_meas_SD
        self.vel_meas_SD = vel_meas_SD

    def copy(self):
        return LCKFConfig(*[getattr(self, name) for name in self._FIELDS])

    def equals(self, other, threshold=0.0):
        """
        Checks whether every parameter of other lies within threshold of
        this configuration
        """
        if other is None:
            return False
        return all(abs(getattr(self, name) - getattr(other, name)) <= threshold for name in self._FIELDS)

    def __eq__(self, other):
        if not isinstance(other, LCKFConfig):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def __repr__(self):
        return 'LCKFConfig({})'.format(', '.join('{}={!r}'.format(name, getattr(self, name)) for name in self._FIELDS))


class LCKFInitializerConfig:
    """
    Initial uncertainties of the loosely coupled INS/GNSS Kalman filter states

      .init_att_unc       Initial attitude uncertainty per axis (rad)
      .init_vel_unc       Initial velocity uncertainty per axis (m/s)
      .init_pos_unc       Initial position uncertainty per axis (m)
      .init_b_a_unc       Initial accelerometer bias uncertainty per instrument (m/s^2)
      .init_b_g_unc       Initial gyro bias uncertainty per instrument (rad/s)
    """
    _FIELDS = ('init_att_unc', 'init_vel_unc', 'init_pos_unc', 'init_b_a_unc', 'init_b_g_unc')

    def __init__(self,
                 init_att_unc=1 * DEG_TO_RAD,                                   # Initial attitude uncertainty per axis (deg, converted to rad)
                 init_vel_unc=0.1,                                              # Initial velocity uncertainty per axis (m/s)
                 init_pos_unc=10,                                               # Initial position uncertainty per axis (m)
                 init_b_a_unc=1000 * MICRO_G_TO_METERS_PER_SECOND_SQUARED,      # Initial accelerometer bias uncertainty (micro-g, converted to m/s^2)
                 init_b_g_unc=10 * DEG_TO_RAD / 3600):                          # Initial gyro bias uncertainty (deg/hour, converted to rad/sec)
        self.init_att_unc = init_att_unc
        self.init_vel_unc = init_vel_unc
        self.init_pos_unc = init_pos_unc
        self.init_b_a_unc = init_b_a_unc
        self.init_b_g_unc = init_b_g_unc

    def copy(self):
        return LCKFInitializerConfig(*[getattr(self, name) for name in self._FIELDS])

    def equals(self, other, threshold=0.0):
        if other is None:
            return False
        return all(abs(getattr(self, name) - getattr(other, name)) <= threshold for name in self._FIELDS)

    def __eq__(self, other):
        if not isinstance(other, LCKFInitializerConfig):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def __repr__(self):
        return 'LCKFInitializerConfig({})'.format(
            ', '.join('{}={!r}'.format(name, getattr(self, name)) for name in self._FIELDS))
