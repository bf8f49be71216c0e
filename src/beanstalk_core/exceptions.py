# File: src/beanstalk_core/exceptions.py
"""
Beanstalk 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用能进行精细的错误处理。

注意: 服务器返回的非预期状态码 (NOT_FOUND、TIMED_OUT 等) 不在此抛出，
而是记录为 LastError 并以 False/None 返回，见 BeanstalkClient.take_error()。
"""


class BeanstalkError(Exception):
    """Beanstalk 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 beanstalk-core 抛出的已知错误。
    """

    pass


class ConfigError(BeanstalkError):
    """配置加载或校验失败。

    触发场景:
    1. 字段格式错误 (如端口不是整数、超时为非数字)。
    2. 找不到配置文件或环境变量。
    """

    pass


class NetworkError(BeanstalkError):
    """网络层面的错误 (I/O 级别)。

    触发场景:
    1. TCP 连接建立失败或超时。
    2. 发送 (send) 或 接收 (recv) 超时。
    3. 服务器提前关闭连接。

    注意: 此类错误发生后连接已不可信，客户端会主动断开，上层需重新 connect()。
    """

    pass


class ProtocolError(BeanstalkError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 响应字段无法按约定解析 (如 Job ID 不是数字)。
    2. 响应结构与命令语法不符。
    """

    pass


class FramingError(ProtocolError):
    """响应分帧错误。

    触发场景:
    1. 响应中找不到 CRLF 结尾的状态行。
    2. 声明的 Body 长度大于实际可读取的字节数。
    """

    pass


class StateError(BeanstalkError):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 在未连接状态下发送命令。
    """

    pass
