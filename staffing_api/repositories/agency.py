from staffing_api.domain.agency import Agency
from staffing_api.domain.profile import Profile
from staffing_api.repositories.base import BaseRepository


class AgencyRepository(BaseRepository[Agency]):
    model = Agency


class ProfileRepository(BaseRepository[Profile]):
    model = Profile
