"""Unit tests for the shift endpoints."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from app.core.errors import ShiftConflictError
from app.models.shift import Shift, ShiftStatus, ShiftType
from app.schemas.auth import CurrentUser
from app.schemas.shift import ShiftCreate, ShiftStatusUpdate, ShiftUpdate
from app.services.scheduling import VN_TZ


def _user(permissions: list[str], user_id=None) -> CurrentUser:
    return CurrentUser(
        id=user_id or uuid.uuid4(),
        email="",
        full_name="Quản lý",
        role="manager",
        store_id=uuid.uuid4(),
        permissions=permissions,
        is_active=True,
    )


def _result(scalar=None, items=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = items or []
    return result


def _shift(staff_id, status=ShiftStatus.SCHEDULED) -> Shift:
    return Shift(
        id=uuid.uuid4(),
        shift_type=ShiftType.MORNING,
        shift_date=date(2024, 6, 3),
        starts_at=datetime(2024, 6, 3, 6, tzinfo=VN_TZ),
        ends_at=datetime(2024, 6, 3, 14, tzinfo=VN_TZ),
        status=status,
        staff_id=staff_id,
        store_id=uuid.uuid4(),
    )


@pytest.mark.asyncio
async def test_create_shift_rejects_overlap():
    from app.api.shifts import create_shift

    user = _user(["shift:manage"])
    staff = MagicMock(is_active=True)
    existing = _shift(uuid.uuid4())

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [_result(scalar=staff), _result(items=[existing])]

    body = ShiftCreate(staff_id=existing.staff_id, shift_type=ShiftType.OFFICE, shift_date=date(2024, 6, 3))
    with pytest.raises(ShiftConflictError) as exc_info:
        await create_shift(body, user, mock_db)

    assert "ca sáng" in exc_info.value.detail
    assert "03/06/2024" in exc_info.value.detail
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_shift_for_inactive_staff():
    from app.api.shifts import create_shift

    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=MagicMock(is_active=False))

    body = ShiftCreate(staff_id=uuid.uuid4(), shift_type=ShiftType.MORNING, shift_date=date(2024, 6, 3))
    with pytest.raises(HTTPException) as exc_info:
        await create_shift(body, _user(["shift:manage"]), mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_create_shift_unknown_staff():
    from app.api.shifts import create_shift

    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=None)

    body = ShiftCreate(staff_id=uuid.uuid4(), shift_type=ShiftType.MORNING, shift_date=date(2024, 6, 3))
    with pytest.raises(HTTPException) as exc_info:
        await create_shift(body, _user(["shift:manage"]), mock_db)
    assert exc_info.value.status_code == 404


def test_custom_shift_schema_requires_times():
    with pytest.raises(ValueError):
        ShiftCreate(staff_id=uuid.uuid4(), shift_type=ShiftType.CUSTOM, shift_date=date(2024, 6, 3))


@pytest.mark.asyncio
async def test_update_started_shift_rejected():
    from app.api.shifts import update_shift

    shift = _shift(uuid.uuid4(), ShiftStatus.CHECKED_IN)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    with pytest.raises(HTTPException) as exc_info:
        await update_shift(shift.id, ShiftUpdate(shift_type=ShiftType.AFTERNOON), _user(["shift:manage"]), mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_status_invalid_transition():
    from app.api.shifts import change_shift_status

    user = _user(["shift:checkin"])
    shift = _shift(user.id, ShiftStatus.SCHEDULED)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    with pytest.raises(HTTPException) as exc_info:
        await change_shift_status(shift.id, ShiftStatusUpdate(status=ShiftStatus.COMPLETED), user, mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_cashier_cannot_check_in_someone_else():
    from app.api.shifts import change_shift_status

    shift = _shift(uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    with pytest.raises(HTTPException) as exc_info:
        await change_shift_status(
            shift.id, ShiftStatusUpdate(status=ShiftStatus.CHECKED_IN), _user(["shift:checkin"]), mock_db
        )
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_cashier_cannot_cancel():
    from app.api.shifts import change_shift_status

    user = _user(["shift:checkin"])
    shift = _shift(user.id)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    with pytest.raises(HTTPException) as exc_info:
        await change_shift_status(shift.id, ShiftStatusUpdate(status=ShiftStatus.CANCELLED), user, mock_db)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_check_in_own_shift():
    from app.api.shifts import change_shift_status

    user = _user(["shift:checkin"])
    shift = _shift(user.id)
    shift.created_at = datetime.now(VN_TZ)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    response = await change_shift_status(shift.id, ShiftStatusUpdate(status=ShiftStatus.CHECKED_IN), user, mock_db)

    assert response.status == ShiftStatus.CHECKED_IN
    assert shift.checked_in_at is not None
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_started_shift_rejected():
    from app.api.shifts import delete_shift

    shift = _shift(uuid.uuid4(), ShiftStatus.COMPLETED)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    with pytest.raises(HTTPException) as exc_info:
        await delete_shift(shift.id, _user(["shift:manage"]), mock_db)
    assert exc_info.value.status_code == 400
    mock_db.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_shift_null_fields_keep_schedule():
    from app.api.shifts import update_shift

    shift = _shift(uuid.uuid4())
    shift.created_at = datetime(2024, 6, 1, tzinfo=VN_TZ)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=shift)

    body = ShiftUpdate.model_validate({"shift_type": None, "shift_date": None, "note": "Đổi người trực"})
    response = await update_shift(shift.id, body, _user(["shift:manage"]), mock_db)

    assert response.shift_type == ShiftType.MORNING
    assert response.shift_date == date(2024, 6, 3)
    assert response.note == "Đổi người trực"
    assert mock_db.execute.await_count == 1
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_shift_null_type_with_new_date():
    from app.api.shifts import update_shift

    shift = _shift(uuid.uuid4())
    shift.created_at = datetime(2024, 6, 1, tzinfo=VN_TZ)
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_result(scalar=shift), _result(items=[])]

    body = ShiftUpdate.model_validate({"shift_type": None, "shift_date": "2024-06-04"})
    response = await update_shift(shift.id, body, _user(["shift:manage"]), mock_db)

    assert response.shift_type == ShiftType.MORNING
    assert response.starts_at == datetime(2024, 6, 4, 6, tzinfo=VN_TZ)
    assert response.ends_at == datetime(2024, 6, 4, 14, tzinfo=VN_TZ)
