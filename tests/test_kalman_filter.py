import math

import numpy as np
import pytest

from Integration.engine.errors import NumericalInstabilityError
from Integration.engine.kalman_filter import (lc_transition_matrix, lc_system_noise_matrix, propagate_lc_covariance,
                                              lc_measurement_matrices, lc_kalman_gain, lc_measurement_update,
                                              lc_closed_loop_correction, lc_kf_epoch, lc_kf_epoch_into,
                                              lc_kf_propagate)
from Integration.engine.lc_kf_config import LCKFConfig
from Integration.engine.lc_kf_state import LCKFState
from Integration.utils.frame_transform import skew_symmetric
from Integration.utils.gravitation_gravity_model import gravity_ned

from conftest import R_0, R_P

TOR_S = 0.02


class TestTransitionMatrix:
    """First-order error-state transition matrix"""

    def test_block_structure(self, specific_force):
        C_b_e = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        r_eb_e = np.array([[R_0], [0.0], [0.0]])

        Phi = lc_transition_matrix(TOR_S, C_b_e, specific_force, r_eb_e, 0.0)

        assert Phi.shape == (15, 15)
        Omega_ie = skew_symmetric([0, 0, 7.292115E-5])
        np.testing.assert_allclose(Phi[0:3, 0:3], np.identity(3) - TOR_S * Omega_ie)
        np.testing.assert_allclose(Phi[0:3, 12:15], TOR_S * C_b_e)
        np.testing.assert_allclose(Phi[3:6, 9:12], TOR_S * C_b_e)
        np.testing.assert_allclose(Phi[3:6, 0:3], -TOR_S * skew_symmetric(np.matmul(C_b_e, specific_force)))
        np.testing.assert_allclose(Phi[3:6, 3:6], np.identity(3) - 2 * TOR_S * Omega_ie)
        np.testing.assert_allclose(Phi[6:9, 3:6], TOR_S * np.identity(3))
        np.testing.assert_allclose(Phi[6:9, 6:9], np.identity(3))
        np.testing.assert_allclose(Phi[9:15, 9:15], np.identity(6))
        assert np.all(Phi[9:15, 0:9] == 0)

    def test_gravity_coupling_at_equator(self, specific_force):
        r_eb_e = np.array([[R_0], [0.0], [0.0]])

        Phi = lc_transition_matrix(TOR_S, np.identity(3), specific_force, r_eb_e, 0.0)

        # Gravity points down the position vector, so only the radial element is populated
        g_0 = gravity_ned(0.0, 0.0)[2, 0]
        np.testing.assert_allclose(Phi[3, 6], 2 * TOR_S * g_0 / R_0, rtol=1e-3)
        block = Phi[3:6, 6:9].copy()
        block[0, 0] = 0.0
        np.testing.assert_allclose(block, np.zeros((3, 3)), atol=1e-15)

    def test_gravity_coupling_at_pole(self, specific_force):
        r_eb_e = np.array([[0.0], [0.0], [R_P]])

        Phi = lc_transition_matrix(TOR_S, np.identity(3), specific_force, r_eb_e, math.pi / 2)

        g_0 = gravity_ned(math.pi / 2, 0.0)[2, 0]
        np.testing.assert_allclose(Phi[5, 8], 2 * TOR_S * g_0 / R_P, rtol=1e-3)
        np.testing.assert_allclose(Phi[3:5, 6:9], np.zeros((2, 3)), atol=1e-15)

    @pytest.mark.parametrize("tor_s", [0.0, -0.1, float('nan'), float('inf')])
    def test_rejects_bad_interval(self, tor_s, specific_force):
        with pytest.raises(ValueError):
            lc_transition_matrix(tor_s, np.identity(3), specific_force, np.array([[R_0], [0], [0]]), 0.0)

    def test_rejects_position_at_earth_centre(self, specific_force):
        with pytest.raises(ValueError):
            lc_transition_matrix(TOR_S, np.identity(3), specific_force, np.zeros((3, 1)), 0.0)


class TestSystemNoise:

    def test_diagonal_blocks(self):
        config = LCKFConfig(gyro_noise_PSD=1.0, accel_noise_PSD=2.0, accel_bias_PSD=3.0, gyro_bias_PSD=4.0)

        Q = lc_system_noise_matrix(0.5, config)

        expected = np.diag([0.5] * 3 + [1.0] * 3 + [0.0] * 3 + [1.5] * 3 + [2.0] * 3)
        np.testing.assert_array_equal(Q, expected)

    def test_propagation_with_identity_transition(self):
        P = np.diag(np.arange(1.0, 16.0))
        Q = np.diag(np.full(15, 0.2))

        P_prop = propagate_lc_covariance(P, np.identity(15), Q)

        np.testing.assert_allclose(P_prop, P + Q)

    def test_propagation_splits_noise_around_transition(self):
        Phi = np.identity(15)
        Phi[6:9, 3:6] = np.identity(3)
        Q = np.diag(np.full(15, 2.0))

        P_prop = propagate_lc_covariance(np.zeros((15, 15)), Phi, Q)

        # Half of the position noise on each side of Phi, plus the half of the
        # velocity noise that Phi carries into position
        np.testing.assert_allclose(P_prop[6, 6], 1.0 + 1.0 + 1.0)
        np.testing.assert_allclose(P_prop[6, 3], 1.0)


class TestMeasurementStage:

    def test_measurement_matrices(self, lc_kf_config):
        H, R = lc_measurement_matrices(lc_kf_config)

        assert H.shape == (6, 15)
        np.testing.assert_array_equal(H[0:3, 6:9], -np.identity(3))
        np.testing.assert_array_equal(H[3:6, 3:6], -np.identity(3))
        assert np.count_nonzero(H) == 6
        np.testing.assert_allclose(np.diag(R), [2.5 ** 2] * 3 + [0.1 ** 2] * 3)
        assert np.count_nonzero(R) == 6

    def test_kalman_gain_for_diagonal_covariance(self, lc_kf_config):
        P = np.diag([1e-4] * 3 + [0.04] * 3 + [9.0] * 3 + [1e-6] * 6)
        H, R = lc_measurement_matrices(lc_kf_config)

        K = lc_kalman_gain(P, H, R)

        assert K.shape == (15, 6)
        np.testing.assert_allclose(np.diag(K[6:9, 0:3]), [-9.0 / (9.0 + 6.25)] * 3)
        np.testing.assert_allclose(np.diag(K[3:6, 3:6]), [-0.04 / (0.04 + 0.01)] * 3)
        np.testing.assert_allclose(K[0:3, :], np.zeros((3, 6)), atol=1e-15)

    def test_measurement_update_corrects_towards_fix(self, lc_kf_config):
        P = np.diag([1e-4] * 3 + [0.04] * 3 + [9.0] * 3 + [1e-6] * 6)
        r_old = np.array([[R_0], [0.0], [0.0]])
        v_old = np.zeros((3, 1))

        x_est, P_new = lc_measurement_update(r_old + np.array([[3.0], [0.0], [0.0]]), v_old, r_old, v_old, P,
                                             lc_kf_config)

        # Position error state is estimated error, i.e. opposite sign to the innovation
        assert x_est[6, 0] < 0
        np.testing.assert_allclose(x_est[6, 0], -3.0 * 9.0 / (9.0 + 6.25))
        assert P_new[6, 6] < P[6, 6]


class TestClosedLoopCorrection:

    def test_correction_is_applied_to_every_state(self):
        C_b_e = np.identity(3)
        previous = LCKFState(C_b_e=C_b_e, v_eb_e=[1.0, 2.0, 3.0], r_eb_e=[R_0, 10.0, 20.0],
                             b_a=[0.01, 0.02, 0.03], b_g=[1e-5, 2e-5, 3e-5], P_matrix=np.identity(15))
        x_est = np.arange(1.0, 16.0).reshape((15, 1)) * 1e-3

        corrected = lc_closed_loop_correction(x_est, previous)

        np.testing.assert_allclose(corrected.C_b_e, np.matmul(np.identity(3) - skew_symmetric(x_est[0:3]), C_b_e))
        np.testing.assert_allclose(corrected.v_eb_e, previous.v_eb_e - x_est[3:6])
        np.testing.assert_allclose(corrected.r_eb_e, previous.r_eb_e - x_est[6:9])
        np.testing.assert_allclose(corrected.b_a, previous.b_a + x_est[9:12])
        np.testing.assert_allclose(corrected.b_g, previous.b_g + x_est[12:15])
        np.testing.assert_array_equal(corrected.P_matrix, previous.P_matrix)

    def test_attitude_is_not_renormalised(self):
        previous = LCKFState(r_eb_e=[R_0, 0.0, 0.0])
        x_est = np.zeros((15, 1))
        x_est[0:3, 0] = [0.01, -0.02, 0.03]

        corrected = lc_closed_loop_correction(x_est, previous)

        assert not np.allclose(np.matmul(corrected.C_b_e, corrected.C_b_e.T), np.identity(3), atol=1e-6)


class TestLCKFEpoch:

    def test_zero_innovation_leaves_nominal_state(self, equator_state, specific_force, lc_kf_config):
        propagated = lc_kf_propagate(TOR_S, equator_state, specific_force, lc_kf_config)

        new_state = lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                                lc_kf_config)

        np.testing.assert_allclose(new_state.r_eb_e, equator_state.r_eb_e, atol=1e-6)
        np.testing.assert_allclose(new_state.v_eb_e, equator_state.v_eb_e, atol=1e-6)
        np.testing.assert_allclose(new_state.C_b_e, equator_state.C_b_e, atol=1e-12)
        np.testing.assert_allclose(new_state.b_a, np.zeros((3, 1)), atol=1e-12)
        np.testing.assert_allclose(new_state.b_g, np.zeros((3, 1)), atol=1e-12)

        # The update reduces position and velocity uncertainty
        assert np.all(np.diag(new_state.P_matrix)[3:9] < np.diag(propagated.P_matrix)[3:9])
        assert not np.array_equal(new_state.P_matrix, equator_state.P_matrix)

    def test_covariance_is_symmetric(self, equator_state, specific_force, lc_kf_config):
        state = equator_state
        for k in range(5):
            GNSS_r_eb_e = state.r_eb_e + np.array([[3.0], [-2.0], [1.0]])
            GNSS_v_eb_e = state.v_eb_e + np.array([[0.1], [0.0], [-0.05]])
            state = lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, 0.5, state, specific_force, lc_kf_config)

            P = state.P_matrix
            np.testing.assert_allclose(P, P.T, rtol=0, atol=1e-9 * np.max(np.abs(P)))

    def test_outputs_are_deterministic(self, equator_state, specific_force, lc_kf_config):
        GNSS_r_eb_e = equator_state.r_eb_e + 5.0
        GNSS_v_eb_e = [0.2, -0.1, 0.05]

        first = lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, TOR_S, equator_state, specific_force, lc_kf_config)
        second = lc_kf_epoch(GNSS_r_eb_e, GNSS_v_eb_e, TOR_S, equator_state, specific_force, lc_kf_config)

        assert np.array_equal(first.to_buffer(), second.to_buffer())

    def test_previous_state_is_not_modified(self, equator_state, specific_force, lc_kf_config):
        before = equator_state.to_buffer()

        lc_kf_epoch(equator_state.r_eb_e + 10.0, [1.0, 1.0, 1.0], TOR_S, equator_state, specific_force,
                    lc_kf_config)

        assert np.array_equal(equator_state.to_buffer(), before)

    def test_latitude_is_derived_when_omitted(self, equator_state, specific_force, lc_kf_config):
        GNSS_r_eb_e = equator_state.r_eb_e + np.array([[1.0], [2.0], [3.0]])

        derived = lc_kf_epoch(GNSS_r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                              lc_kf_config)
        supplied = lc_kf_epoch(GNSS_r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                               lc_kf_config, est_L_b_old=0.0)

        assert derived.equals(supplied, 1e-12)

    def test_epoch_into_matches_epoch(self, equator_state, specific_force, lc_kf_config):
        GNSS_r_eb_e = equator_state.r_eb_e + 4.0
        expected = lc_kf_epoch(GNSS_r_eb_e, [0.0, 0.3, 0.0], TOR_S, equator_state, specific_force, lc_kf_config)

        result = LCKFState()
        returned = lc_kf_epoch_into(GNSS_r_eb_e, [0.0, 0.3, 0.0], TOR_S, equator_state, specific_force,
                                    lc_kf_config, result)

        assert returned is result
        assert result == expected

    def test_epoch_into_previous_state_itself(self, equator_state, specific_force, lc_kf_config):
        GNSS_r_eb_e = equator_state.r_eb_e + 4.0
        expected = lc_kf_epoch(GNSS_r_eb_e, [0.0, 0.3, 0.0], TOR_S, equator_state, specific_force, lc_kf_config)

        lc_kf_epoch_into(GNSS_r_eb_e, [0.0, 0.3, 0.0], TOR_S, equator_state, specific_force, lc_kf_config,
                         equator_state)

        assert equator_state == expected


class TestLCKFEpochErrors:

    @pytest.fixture
    def singular_config(self):
        return LCKFConfig(gyro_noise_PSD=0.0, accel_noise_PSD=0.0, accel_bias_PSD=0.0, gyro_bias_PSD=0.0,
                          pos_meas_SD=0.0, vel_meas_SD=0.0)

    def test_singular_innovation_covariance(self, specific_force, singular_config):
        state = LCKFState(r_eb_e=[R_0, 0.0, 0.0])

        with pytest.raises(NumericalInstabilityError):
            lc_kf_epoch(state.r_eb_e, state.v_eb_e, TOR_S, state, specific_force, singular_config)

    def test_instability_is_arithmetic_error(self):
        assert issubclass(NumericalInstabilityError, ArithmeticError)

    def test_failed_update_leaves_result_untouched(self, specific_force, singular_config):
        state = LCKFState(r_eb_e=[R_0, 0.0, 0.0])
        result = state.copy()
        before = result.to_buffer()

        with pytest.raises(NumericalInstabilityError):
            lc_kf_epoch_into(state.r_eb_e + 1.0, state.v_eb_e, TOR_S, state, specific_force, singular_config,
                             result)

        assert np.array_equal(result.to_buffer(), before)

    def test_non_finite_covariance(self, equator_state, specific_force, lc_kf_config):
        equator_state.P_matrix[6, 6] = float('nan')

        with pytest.raises(NumericalInstabilityError):
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                        lc_kf_config)

    def test_inversion_failure_is_chained(self, monkeypatch, equator_state, specific_force, lc_kf_config):
        def failing_inv(a):
            raise np.linalg.LinAlgError("Singular matrix")

        monkeypatch.setattr(np.linalg, "inv", failing_inv)

        with pytest.raises(NumericalInstabilityError) as excinfo:
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                        lc_kf_config)

        assert isinstance(excinfo.value.__cause__, np.linalg.LinAlgError)

    def test_instability_is_logged(self, caplog, specific_force, singular_config):
        state = LCKFState(r_eb_e=[R_0, 0.0, 0.0])

        with caplog.at_level("WARNING", logger="Integration.engine.kalman_filter"):
            with pytest.raises(NumericalInstabilityError):
                lc_kf_epoch(state.r_eb_e, state.v_eb_e, TOR_S, state, specific_force, singular_config)

        assert any(record.levelname == "WARNING" for record in caplog.records)

    @pytest.mark.parametrize("tor_s", [0.0, -1.0, float('nan')])
    def test_bad_interval(self, tor_s, equator_state, specific_force, lc_kf_config):
        with pytest.raises(ValueError):
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, tor_s, equator_state, specific_force,
                        lc_kf_config)

    def test_bad_attitude_shape(self, equator_state, specific_force, lc_kf_config):
        equator_state.C_b_e = np.identity(2)

        with pytest.raises(ValueError):
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                        lc_kf_config)

    def test_bad_covariance_shape(self, equator_state, specific_force, lc_kf_config):
        equator_state.P_matrix = np.identity(14)

        with pytest.raises(ValueError):
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, specific_force,
                        lc_kf_config)

    def test_bad_vector_shapes(self, equator_state, specific_force, lc_kf_config):
        with pytest.raises(ValueError):
            lc_kf_epoch(equator_state.r_eb_e, equator_state.v_eb_e, TOR_S, equator_state, [0.0, 0.0, -9.81, 0.0],
                        lc_kf_config)
        with pytest.raises(ValueError):
            lc_kf_epoch([R_0, 0.0], equator_state.v_eb_e, TOR_S, equator_state, specific_force, lc_kf_config)

    def test_position_at_earth_centre(self, specific_force, lc_kf_config):
        state = LCKFState(P_matrix=np.identity(15))

        with pytest.raises(ValueError):
            lc_kf_epoch(state.r_eb_e, state.v_eb_e, TOR_S, state, specific_force, lc_kf_config)
        with pytest.raises(ValueError):
            lc_kf_epoch(state.r_eb_e, state.v_eb_e, TOR_S, state, specific_force, lc_kf_config, est_L_b_old=0.0)


class TestLCKFPropagate:

    def test_propagation_only(self, equator_state, specific_force, lc_kf_config):
        propagated = lc_kf_propagate(TOR_S, equator_state, specific_force, lc_kf_config, est_L_b_old=0.0)

        Phi = lc_transition_matrix(TOR_S, equator_state.C_b_e, specific_force, equator_state.r_eb_e, 0.0)
        Q = lc_system_noise_matrix(TOR_S, lc_kf_config)
        np.testing.assert_allclose(propagated.P_matrix, propagate_lc_covariance(equator_state.P_matrix, Phi, Q))
        np.testing.assert_array_equal(propagated.r_eb_e, equator_state.r_eb_e)
        np.testing.assert_array_equal(propagated.v_eb_e, equator_state.v_eb_e)
        np.testing.assert_array_equal(propagated.C_b_e, equator_state.C_b_e)

    def test_uncertainty_grows(self, equator_state, specific_force, lc_kf_config):
        propagated = lc_kf_propagate(1.0, equator_state, specific_force, lc_kf_config)

        assert np.all(np.diag(propagated.P_matrix)[0:9] > np.diag(equator_state.P_matrix)[0:9])
