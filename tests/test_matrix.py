import pytest

from constraint2d.matrix import Matrix


def assert_close(a, b, err=1e-6):
    assert (a.width, a.height) == (b.width, b.height)
    assert a.equals(b, err)


def column(m):
    return [m.get(0, i) for i in range(m.height)]


def test_initialization():
    matrix = Matrix(10, 5, 0.0)
    assert matrix.width == 10
    assert matrix.height == 5
    assert matrix.get(9, 4) == 0.0


def test_initialization_with_value():
    matrix = Matrix(2, 3, 1.5)
    assert matrix.get(1, 2) == 1.5


def test_multiplication():
    m0 = Matrix.from_rows([[0.0, 1.0], [-1.0, 0.0]])
    v = Matrix.from_rows([[1.0], [2.0]])
    result = m0.multiply(v)
    assert result.get(0, 0) == 2.0
    assert result.get(0, 1) == -1.0


def test_left_scale():
    m0 = Matrix.from_rows([[-1.0, 2.0], [3.0, -4.0]])
    scale_vector = Matrix.from_rows([[1.0], [2.0]])
    scale_matrix = Matrix.from_rows([[1.0, 0.0], [0.0, 2.0]])
    assert_close(m0.left_scale(scale_vector), scale_matrix.multiply(m0))


def test_right_scale():
    m0 = Matrix.from_rows([[-1.0, 2.0], [3.0, -4.0]])
    scale_vector = Matrix.from_rows([[1.0], [2.0]])
    scale_matrix = Matrix.from_rows([[1.0, 0.0], [0.0, 2.0]])
    assert_close(m0.right_scale(scale_vector), m0.multiply(scale_matrix))


def test_transpose_multiplication():
    m0 = Matrix.from_rows([[0.0, 1.0], [-1.0, 0.0]])
    v = Matrix.from_rows([[1.0], [2.0]])
    reference = m0.transpose().multiply(v)
    assert_close(m0.transpose_multiply(v), reference)
    assert column(reference) == [-2.0, 1.0]


def test_multiply_shape_mismatch():
    with pytest.raises(ValueError):
        Matrix(2, 2).multiply(Matrix(1, 3))


def test_get_out_of_range():
    with pytest.raises(IndexError):
        Matrix(2, 2).get(2, 0)


def test_set_out_of_range():
    with pytest.raises(IndexError):
        Matrix(2, 2).set(0, -1, 1.0)


def test_from_rows_ragged():
    with pytest.raises(ValueError):
        Matrix.from_rows([[1.0, 2.0], [3.0]])


def test_add_and_negate_cancel():
    m = Matrix.from_rows([[1.0, -2.0], [3.5, 4.0]])
    assert_close(m.add(m.negate()), Matrix(2, 2))


def test_scale_and_subtract():
    m = Matrix.from_rows([[1.0, -2.0], [3.5, 4.0]])
    assert_close(m.scale(2.0).subtract(m), m)


def test_subtract_shape_mismatch():
    with pytest.raises(ValueError):
        Matrix(2, 2).subtract(Matrix(2, 3))


def test_component_multiply():
    m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
    assert_close(m.component_multiply(m), Matrix.from_rows([[1.0, 4.0], [9.0, 16.0]]))


def test_add_at():
    m = Matrix(1, 2)
    m.add_at(0, 1, 2.5)
    m.add_at(0, 1, 1.0)
    assert column(m) == [0.0, 3.5]


def test_vector_magnitude_and_dot():
    v = Matrix.from_rows([[3.0], [4.0]])
    assert v.vector_magnitude_squared() == 25.0
    a = Matrix.from_rows([[1.0], [2.0], [3.0]])
    b = Matrix.from_rows([[4.0], [5.0], [6.0]])
    assert a.dot(b) == 32.0


def test_vector_operations_need_column():
    with pytest.raises(ValueError):
        Matrix(2, 2).vector_magnitude_squared()
    with pytest.raises(ValueError):
        Matrix(1, 2).dot(Matrix(1, 3))


def test_madd():
    v = Matrix.from_rows([[1.0], [2.0]])
    v.madd(Matrix.from_rows([[3.0], [4.0]]), 2.0)
    assert column(v) == [7.0, 10.0]


def test_pmadd():
    v = Matrix.from_rows([[1.0], [2.0]])
    v.pmadd(Matrix.from_rows([[3.0], [4.0]]), 2.0)
    assert column(v) == [5.0, 8.0]


def test_swap_rows():
    m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
    m.swap_rows(0, 1)
    assert m.get(0, 0) == 3.0
    assert m.get(1, 1) == 2.0
    with pytest.raises(IndexError):
        m.swap_rows(0, 2)


def test_resize_keeps_overlap_and_zero_pads():
    m = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
    m.resize(3, 1)
    assert (m.width, m.height) == (3, 1)
    assert [m.get(i, 0) for i in range(3)] == [1.0, 2.0, 0.0]
    m.resize(1, 2)
    assert column(m) == [1.0, 0.0]


def test_fill():
    m = Matrix(2, 2)
    m.fill(7.0)
    assert_close(m, Matrix(2, 2, 7.0))


def test_copy_is_independent():
    m = Matrix.from_rows([[1.0]])
    c = m.copy()
    c.set(0, 0, 5.0)
    assert m.get(0, 0) == 1.0
    assert c.get(0, 0) == 5.0


def test_equals_respects_shape_and_tolerance():
    a = Matrix.from_rows([[1.0, 2.0]])
    assert not a.equals(Matrix.from_rows([[1.0], [2.0]]))
    assert a.equals(Matrix.from_rows([[1.0, 2.0000001]]))
    assert not a.equals(Matrix.from_rows([[1.0, 2.1]]))
    assert a.equals(Matrix.from_rows([[1.0, 2.1]]), err=0.2)


def test_transpose_shape_and_values():
    m = Matrix.from_rows([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    t = m.transpose()
    assert (t.width, t.height) == (2, 3)
    assert t.get(1, 2) == 6.0
    assert_close(t.transpose(), m)


def test_transpose_of_empty_height():
    t = Matrix(3, 0).transpose()
    assert (t.width, t.height) == (0, 3)