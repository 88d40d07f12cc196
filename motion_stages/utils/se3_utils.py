"""SE3/SO3 helpers on top of sophuspy.

All frame algebra in motion_stages uses sophuspy SE3 objects. Composition is
right-to-left, child-into-parent: ``world_T_child = world_T_parent * parent_T_child``.
Quaternions are stored in ROS order ``[x, y, z, w]``.
"""

import numpy as np
import sophuspy as sp
from numpy.typing import ArrayLike
from scipy.spatial.transform import Rotation

from motion_stages.config import SE3_EPS

__all__ = [
    "se3_identity",
    "se3_from_rpy",
    "se3_from_trans",
    "se3_from_quat",
    "se3_to_quat",
    "se3_axis_angle",
    "se3_transform_point",
    "se3_with_translation",
    "se3_copy",
    "se3_allclose",
]


def se3_identity() -> sp.SE3:
    """Identity transform."""
    return sp.SE3(np.eye(3), [0.0, 0.0, 0.0])


def se3_from_rpy(
    x: float,
    y: float,
    z: float,
    roll: float,
    pitch: float,
    yaw: float,
    degrees: bool = False,
) -> sp.SE3:
    """Create SE3 from position and RPY angles.

    Args:
        x, y, z: Translation components
        roll, pitch, yaw: Rotation angles (xyz order)
        degrees: If True, angles are in degrees
    """
    if degrees:
        roll, pitch, yaw = np.radians([roll, pitch, yaw])
    R = Rotation.from_euler("XYZ", [roll, pitch, yaw]).as_matrix()
    return sp.SE3(R, [x, y, z])


def se3_from_trans(x: float, y: float, z: float) -> sp.SE3:
    """Create SE3 from translation only (identity rotation)."""
    return sp.SE3(np.eye(3), [x, y, z])


def se3_from_quat(position: ArrayLike, quat_xyzw: ArrayLike) -> sp.SE3:
    """Create SE3 from a position and an [x, y, z, w] quaternion.

    The quaternion is normalized; a zero quaternion is rejected by scipy.
    """
    R = Rotation.from_quat(np.asarray(quat_xyzw, dtype=np.float64)).as_matrix()
    return sp.SE3(R, np.asarray(position, dtype=np.float64))


def se3_to_quat(se3: sp.SE3) -> tuple[np.ndarray, np.ndarray]:
    """Split SE3 into (position, [x, y, z, w] quaternion)."""
    quat = Rotation.from_matrix(se3.rotationMatrix()).as_quat()
    return np.asarray(se3.translation(), dtype=np.float64), quat


def se3_axis_angle(axis: ArrayLike, angle: float) -> sp.SE3:
    """Pure rotation of ``angle`` radians about a (not necessarily unit) axis."""
    a = np.asarray(axis, dtype=np.float64)
    n = np.linalg.norm(a)
    if n == 0.0:
        return se3_identity()
    R = Rotation.from_rotvec(a / n * angle).as_matrix()
    return sp.SE3(R, [0.0, 0.0, 0.0])


def se3_transform_point(se3: sp.SE3, point: ArrayLike) -> np.ndarray:
    """Apply SE3 to a 3D point: R @ p + t."""
    p = np.asarray(point, dtype=np.float64)
    return se3.rotationMatrix() @ p + se3.translation()


def se3_with_translation(se3: sp.SE3, translation: ArrayLike) -> sp.SE3:
    """Copy of ``se3`` with its rotation kept and translation replaced."""
    return sp.SE3(se3.rotationMatrix(), np.asarray(translation, dtype=np.float64))


def se3_copy(se3: sp.SE3) -> sp.SE3:
    """Independent copy of an SE3."""
    return sp.SE3(se3.rotationMatrix(), se3.translation())


def se3_allclose(a: sp.SE3, b: sp.SE3, atol: float = SE3_EPS) -> bool:
    """Element-wise comparison of two transforms' homogeneous matrices."""
    return bool(np.allclose(a.matrix(), b.matrix(), atol=atol))
