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
from Integration.utils.frame_transform import ecef_to_ned, orthonormalize_ctm

# Number of error states: attitude, velocity, position, accel bias, gyro bias
NUM_STATES = 15

# Flattened state: C_b_e (9), v_eb_e (3), r_eb_e (3), b_a (3), b_g (3), P_matrix (225)
BUFFER_LENGTH = 9 + 4 * 3 + NUM_STATES * NUM_STATES


def as_column_vector(value, name):
    """
    Converts a 3-element sequence, (3,) or (3x1) array into a (3x1) float array
    """
    array = np.asarray(value, dtype=float)
    if array.size != 3 or (array.ndim == 2 and 1 not in array.shape) or array.ndim > 2:
        raise ValueError("{} must have 3 elements, got shape {}".format(name, array.shape))
    return array.reshape((3, 1)).copy()


def as_matrix(value, shape, name):
    array = np.asarray(value, dtype=float)
    if array.shape != shape:
        raise ValueError("{} must be {}x{}, got shape {}".format(name, shape[0], shape[1], array.shape))
    return array.copy()


class LCKFState:
    """
    Navigation state of the loosely coupled INS/GNSS Kalman filter

      .C_b_e        body-to-ECEF-frame coordinate transformation matrix
      .v_eb_e       (3x1) velocity of body frame w.r.t. ECEF frame, resolved
                    along ECEF-frame axes (m/s)
      .r_eb_e       (3x1) Cartesian position of body frame w.r.t. ECEF frame,
                    resolved along ECEF-frame axes (m)
      .b_a          (3x1) estimated accelerometer biases (m/s^2)
      .b_g          (3x1) estimated gyro biases (rad/s)
      .P_matrix     15x15 error covariance matrix, states ordered attitude,
                    velocity, position, accelerometer bias, gyro bias
    """

    def __init__(self, C_b_e=None, v_eb_e=None, r_eb_e=None, b_a=None, b_g=None, P_matrix=None):
        self.C_b_e = np.identity(3) if C_b_e is None else as_matrix(C_b_e, (3, 3), "C_b_e")
        self.v_eb_e = np.zeros((3, 1)) if v_eb_e is None else as_column_vector(v_eb_e, "v_eb_e")
        self.r_eb_e = np.zeros((3, 1)) if r_eb_e is None else as_column_vector(r_eb_e, "r_eb_e")
        self.b_a = np.zeros((3, 1)) if b_a is None else as_column_vector(b_a, "b_a")
        self.b_g = np.zeros((3, 1)) if b_g is None else as_column_vector(b_g, "b_g")
        self.P_matrix = np.zeros((NUM_STATES, NUM_STATES)) if P_matrix is None else \
            as_matrix(P_matrix, (NUM_STATES, NUM_STATES), "P_matrix")

    @property
    def IMU_bias(self):
        """(6x1) accelerometer biases followed by gyro biases"""
        return np.vstack((self.b_a, self.b_g))

    def copy(self):
        return LCKFState(self.C_b_e, self.v_eb_e, self.r_eb_e, self.b_a, self.b_g, self.P_matrix)

    def copy_from(self, other):
        """
        Overwrites every element of this state with those of other. Inputs are
        validated before anything is written.
        """
        C_b_e = as_matrix(other.C_b_e, (3, 3), "C_b_e")
        v_eb_e = as_column_vector(other.v_eb_e, "v_eb_e")
        r_eb_e = as_column_vector(other.r_eb_e, "r_eb_e")
        b_a = as_column_vector(other.b_a, "b_a")
        b_g = as_column_vector(other.b_g, "b_g")
        P_matrix = as_matrix(other.P_matrix, (NUM_STATES, NUM_STATES), "P_matrix")

        self.C_b_e = C_b_e
        self.v_eb_e = v_eb_e
        self.r_eb_e = r_eb_e
        self.b_a = b_a
        self.b_g = b_g
        self.P_matrix = P_matrix

    def equals(self, other, threshold=0.0):
        """
        Checks whether every element of other lies within threshold of this
        state
        """
        if other is None:
            return False
        pairs = ((self.C_b_e, other.C_b_e), (self.v_eb_e, other.v_eb_e), (self.r_eb_e, other.r_eb_e),
                 (self.b_a, other.b_a), (self.b_g, other.b_g), (self.P_matrix, other.P_matrix))
        for mine, theirs in pairs:
            theirs = np.asarray(theirs, dtype=float)
            if mine.size != theirs.size:
                return False
            if not np.all(np.abs(mine.ravel() - theirs.ravel()) <= threshold):
                return False
        return True

    def __eq__(self, other):
        if not isinstance(other, LCKFState):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def to_buffer(self):
        """
        Flattens the state into a buffer of 246 doubles: C_b_e (row-major),
        v_eb_e, r_eb_e, b_a, b_g and P_matrix (row-major)
        """
        return np.concatenate((self.C_b_e.ravel(), self.v_eb_e.ravel(), self.r_eb_e.ravel(),
                               self.b_a.ravel(), self.b_g.ravel(), self.P_matrix.ravel()))

    @classmethod
    def from_buffer(cls, buffer):
        buffer = np.asarray(buffer, dtype=float).ravel()
        if buffer.size != BUFFER_LENGTH:
            raise ValueError("State buffer must hold {} values, got {}".format(BUFFER_LENGTH, buffer.size))

        return cls(C_b_e=buffer[0:9].reshape((3, 3)),
                   v_eb_e=buffer[9:12],
                   r_eb_e=buffer[12:15],
                   b_a=buffer[15:18],
                   b_g=buffer[18:21],
                   P_matrix=buffer[21:].reshape((NUM_STATES, NUM_STATES)))

    def get_ned(self):
        """
        Outputs:
          L_b           latitude (rad)
          lambda_b      longitude (rad)
          h_b           height (m)
          v_eb_n        (3x1) velocity resolved along north, east, and down (m/s)
          C_b_n         body-to-NED coordinate transformation matrix
        """
        return ecef_to_ned(self.r_eb_e, self.v_eb_e, self.C_b_e)

    def state_sd(self):
        """Standard deviations of the 15 error states"""
        return np.sqrt(np.diag(self.P_matrix))

    def renormalize_attitude(self):
        self.C_b_e = orthonormalize_ctm(self.C_b_e)

    def __repr__(self):
        return 'LCKFState(r_eb_e={}, v_eb_e={})'.format(self.r_eb_e.ravel().tolist(), self.v_eb_e.ravel().tolist())
