"""Application settings (key/value) editable by super admins."""
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.guards import SettingsPermissions, require_super_admin
from ..models.base import get_db
from ..models.setting import AppSetting

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=Dict[str, Optional[str]], dependencies=[Depends(SettingsPermissions.view)])
def get_settings(db: Session = Depends(get_db)):
    return {s.key: s.value for s in db.query(AppSetting).order_by(AppSetting.key)}


@router.put(
    "/",
    response_model=Dict[str, Optional[str]],
    dependencies=[Depends(require_super_admin), Depends(SettingsPermissions.edit)],
)
def update_settings(values: Dict[str, Optional[str]], db: Session = Depends(get_db)):
    for key, value in values.items():
        setting = db.get(AppSetting, key)
        if setting is None:
            db.add(AppSetting(key=key, value=value))
        else:
            setting.value = value
    db.commit()
    return {s.key: s.value for s in db.query(AppSetting).order_by(AppSetting.key)}
