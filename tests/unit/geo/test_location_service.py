import asyncio

import pytest

from contracts.geo_dto import GeoPoint
from medtrace.domain.exceptions import GeolocationError
from medtrace.domain.interfaces import ILocationProvider
from medtrace.geo import LocationService, StaticLocationProvider


class HangingProvider(ILocationProvider):
    """Провайдер, который никогда не отвечает."""

    async def get_position(self) -> GeoPoint:
        await asyncio.sleep(3600)


class BrokenProvider(ILocationProvider):

    async def get_position(self) -> GeoPoint:
        raise OSError("gps chip offline")


@pytest.mark.asyncio
async def test_success():
    point = GeoPoint(latitude=23.8, longitude=90.4, accuracy=12)
    result = await LocationService(StaticLocationProvider([point])).acquire()
    assert result.ok
    assert result.status == "success"
    assert result.point == point


@pytest.mark.asyncio
async def test_permission_denied_goes_to_callback():
    errors = []
    provider = StaticLocationProvider(error=GeolocationError("denied", kind=GeolocationError.PERMISSION_DENIED))
    result = await LocationService(provider, on_error=errors.append).acquire()
    assert result.status == "permission-denied"
    assert result.point is None
    assert [e.kind for e in errors] == ["permission-denied"]


@pytest.mark.asyncio
async def test_timeout():
    errors = []
    result = await LocationService(HangingProvider(), timeout=0.01, on_error=errors.append).acquire()
    assert result.status == "timeout"
    assert errors[0].kind == GeolocationError.TIMEOUT


@pytest.mark.asyncio
async def test_unavailable():
    assert (await LocationService(StaticLocationProvider([])).acquire()).status == "unavailable"
    assert (await LocationService(BrokenProvider()).acquire()).status == "unavailable"


@pytest.mark.asyncio
async def test_failing_callback_does_not_escape():
    def explode(error):
        raise RuntimeError("ui gone")

    result = await LocationService(StaticLocationProvider([]), on_error=explode).acquire()
    assert result.status == "unavailable"


@pytest.mark.asyncio
async def test_release():
    provider = StaticLocationProvider([GeoPoint(latitude=1, longitude=1)])
    await LocationService(provider).release()
    assert provider.released
