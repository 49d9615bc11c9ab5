from mqcloud.common.environments import flag

in_global_debug_mode = flag('MQCLOUD_DEBUG',
                            description='Enable the debug mode (DEBUG logs and the wire log of urllib3)')
detailed_error = flag('MQCLOUD_DETAILED_ERROR',
                      description='Include the response body and the request URL in the API error messages')
