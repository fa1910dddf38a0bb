import numpy as np
import pytest

from Integration.engine.initialize import initialize_lc_P_matrix
from Integration.engine.lc_kf_config import LCKFConfig, LCKFInitializerConfig
from Integration.engine.lc_kf_state import LCKFState

R_0 = 6378137.0
R_P = 6356752.31425


@pytest.fixture
def lc_kf_config():
    return LCKFConfig()


@pytest.fixture
def lc_kf_init_config():
    return LCKFInitializerConfig()


@pytest.fixture
def equator_state(lc_kf_init_config):
    """Stationary body on the equator at the prime meridian, body axes aligned with ECEF"""
    return LCKFState(C_b_e=np.identity(3),
                     v_eb_e=np.zeros((3, 1)),
                     r_eb_e=np.array([[R_0], [0.0], [0.0]]),
                     P_matrix=initialize_lc_P_matrix(lc_kf_init_config))


@pytest.fixture
def specific_force():
    return np.array([[0.0], [0.0], [-9.81]])
