from ring_bridge.remote.base import Ding, RemoteApi, RemoteCamera, RemoteDevice, RemoteLocation

__all__ = ["Ding", "RemoteApi", "RemoteCamera", "RemoteDevice", "RemoteLocation"]
