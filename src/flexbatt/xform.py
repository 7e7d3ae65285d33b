## homogeneous 4x4 transformations for placing flexbatt solids

## Copyright (c) 2026 flexbatt contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from math import cos, sin, radians

import numpy as np

## A transform is a plain 4x4 numpy array acting on column vectors,
## so ``A @ B`` applies ``B`` first.  Angles are in degrees, like the
## rest of the package.

__all__ = ['Identity', 'Rotation', 'Translation', 'Scale', 'Mirror',
           'compose', 'transform_point']

_AXES = {'x': (1.0, 0.0, 0.0), 'y': (0.0, 1.0, 0.0), 'z': (0.0, 0.0, 1.0)}


def Identity():
    return np.eye(4)


# return the generalized 4x4 arbitrary axis rotation matrix
def Rotation(axis, angle, inverse=False):
    if isinstance(axis, str):
        axis = _AXES[axis.lower()]
    u = np.asarray(axis, dtype=float)[:3]
    m = np.linalg.norm(u)
    if m < 1e-12:
        raise ValueError('zero-length rotation axis not allowed')
    u = u / m

    if inverse:
        angle = -angle
    rad = radians(angle % 360.0)

    ux, uy, uz = u
    cang = cos(rad)
    cmin = 1.0 - cang
    sang = sin(rad)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = np.array([[cang + ux*ux*cmin, ux*uy*cmin - uz*sang, ux*uz*cmin + uy*sang, 0.0],
                  [uy*ux*cmin + uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0.0],
                  [uz*ux*cmin - uy*sang, uz*uy*cmin + ux*sang, cang + uz*uz*cmin, 0.0],
                  [0.0, 0.0, 0.0, 1.0]])
    return R


def Translation(delta, inverse=False):
    d = np.zeros(3)
    d[:len(delta[:3])] = delta[:3]
    if inverse:
        d = -d
    T = np.eye(4)
    T[:3, 3] = d
    return T


def Scale(x, y=None, z=None, inverse=False):
    if y is None and z is None:
        if np.ndim(x) == 0:
            sx = sy = sz = float(x)
        else:
            sx, sy, sz = (float(v) for v in x[:3])
    elif y is not None and z is not None:
        sx, sy, sz = float(x), float(y), float(z)
    else:
        raise ValueError('bad scaling values passed to Scale')

    if inverse:
        sx, sy, sz = 1.0/sx, 1.0/sy, 1.0/sz

    return np.diag([sx, sy, sz, 1.0])


def Mirror(axis):
    """Reflection across the plane normal to ``axis`` ('x', 'y' or 'z')."""
    s = [1.0, 1.0, 1.0]
    s['xyz'.index(axis.lower())] = -1.0
    return Scale(*s)


def compose(*mats):
    """``compose(A, B, C)`` is ``A @ B @ C``: C is applied first."""
    result = np.eye(4)
    for m in mats:
        result = result @ m
    return result


def transform_point(mat, p):
    v = np.array([p[0], p[1], p[2] if len(p) > 2 else 0.0, 1.0])
    return (mat @ v)[:3]
