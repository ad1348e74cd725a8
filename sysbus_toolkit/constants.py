"""All bus names, interfaces, members & match rules live here."""

# D-Bus ----------------------------------------------------------------------
DBUS_PROP_IFACE                = "org.freedesktop.DBus.Properties"

# systemd --------------------------------------------------------------------
SYSTEMD_SERVICE_NAME           = "org.freedesktop.systemd1"
SYSTEMD_OBJECT_PATH            = "/org/freedesktop/systemd1"
SYSTEMD_MANAGER_IFACE          = "org.freedesktop.systemd1.Manager"
SYSTEMD_UNIT_IFACE             = "org.freedesktop.systemd1.Unit"
SYSTEMD_UNIT_STATE_PROPERTY    = "ActiveState"

SYSTEMD_METHOD_SUBSCRIBE       = "Subscribe"
SYSTEMD_METHOD_LOAD_UNIT       = "LoadUnit"
SYSTEMD_METHOD_START_UNIT      = "StartUnit"
SYSTEMD_METHOD_STOP_UNIT       = "StopUnit"
SYSTEMD_JOB_MODE_REPLACE       = "replace"

SYSTEMD_SIGNAL_JOB_REMOVED     = "JobRemoved"
SYSTEMD_JOB_REMOVED_SIGNATURE  = "uoss"  # id, job path, unit, result

# NetworkManager -------------------------------------------------------------
NM_SERVICE_NAME                = "org.freedesktop.NetworkManager"
NM_OBJECT_PATH                 = "/org/freedesktop/NetworkManager"
NM_IFACE                       = "org.freedesktop.NetworkManager"
NM_DEVICE_IFACE                = "org.freedesktop.NetworkManager.Device"
NM_ACTIVE_CONNECTION_IFACE     = "org.freedesktop.NetworkManager.Connection.Active"

NM_METHOD_GET_STATE            = "state"
NM_METHOD_CHECK_CONNECTIVITY   = "CheckConnectivity"
NM_METHOD_DEVICE_BY_IFACE      = "GetDeviceByIpIface"

NM_PROP_PRIMARY_CONNECTION     = "PrimaryConnection"
NM_PROP_ACTIVE_DEVICES         = "Devices"
NM_PROP_DEVICE_INTERFACE       = "Interface"
NM_PROP_DEVICE_STATE           = "State"

NM_SIGNAL_STATE_CHANGED        = "StateChanged"
NM_STATE_CHANGED_SIGNATURE     = "u"    # new state
NM_DEVICE_STATE_SIGNATURE      = "uuu"  # new state, old state, reason

# Subscriptions --------------------------------------------------------------
DEFAULT_SIGNAL_BUFFER          = 20
DEFAULT_JOB_TIMEOUT_S          = 5.0
