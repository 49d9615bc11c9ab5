from mqcloud.client.mqcloud.client import MqcloudV1, QueueManagersPager, UsersPager, ApplicationsPager
